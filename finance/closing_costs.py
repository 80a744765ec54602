from models import CalculatorValues
from finance.country_rules import CountryConfig

DEFAULT_PMI_RATE = 0.005  # of loan balance, per year


def buying_closing_cost(values: CalculatorValues, config: CountryConfig) -> float:
    """
    One-off costs paid by the buyer at completion.

    An explicit `buying_cost_fraction` wins. Otherwise the country's rules apply:
      - notary fees (reduced rate for new builds where the country has one)
      - transfer tax (exact banded function where available, else a flat rate,
        reduced for a primary residence where the country has such a rate)
      - registration fees
      - the buyer's share of the agent commission
    """
    price = values.home_price
    if values.buying_cost_fraction > 0:
        return price * values.buying_cost_fraction

    costs = config.closing_costs

    notary_rate = costs.notary_fees
    if values.is_new_build and costs.new_build_notary_fees is not None:
        notary_rate = costs.new_build_notary_fees

    if costs.transfer_tax_function is not None:
        transfer_tax = costs.transfer_tax_function(price, values.is_first_time_buyer)
    else:
        rate = costs.transfer_tax
        if values.is_primary_residence and costs.primary_residence_transfer_tax is not None:
            rate = costs.primary_residence_transfer_tax
        transfer_tax = price * rate

    return (
        price * notary_rate
        + transfer_tax
        + price * costs.registration_fees
        + price * costs.buyer_agent_share()
    )


def selling_closing_cost(
    sale_price: float, values: CalculatorValues, config: CountryConfig
) -> float:
    if values.selling_cost_fraction > 0:
        return sale_price * values.selling_cost_fraction
    return sale_price * config.closing_costs.seller_agent_share()


def security_deposit(values: CalculatorValues, config: CountryConfig) -> float:
    """Deposit in currency: override months (or the country's typical), capped at the legal maximum."""
    rules = config.renting_rules
    months = (
        values.security_deposit_months
        if values.security_deposit_months > 0
        else rules.typical_security_deposit
    )
    if rules.max_security_deposit is not None:
        months = min(months, rules.max_security_deposit)
    return values.monthly_rent * months


def broker_fee(values: CalculatorValues, config: CountryConfig) -> float:
    rules = config.renting_rules
    if not rules.broker_fees_common:
        return 0.0  # banned or not customary
    fraction = (
        values.broker_fee_fraction
        if values.broker_fee_fraction > 0
        else rules.typical_broker_fee
    )
    return values.monthly_rent * 12 * fraction


def mortgage_insurance(
    loan_balance: float, values: CalculatorValues, config: CountryConfig
) -> float:
    """
    Annual premium on `loan_balance` while loan-to-value is above the country threshold.
    Loan-to-value is measured against the purchase price. A `pmi_rate` of 0 means
    DEFAULT_PMI_RATE; countries without mortgage insurance never charge it.
    """
    rules = config.mortgage_rules
    if not rules.has_mortgage_insurance or values.home_price <= 0:
        return 0.0
    if loan_balance / values.home_price <= rules.mortgage_insurance_threshold:
        return 0.0
    rate = values.pmi_rate if values.pmi_rate > 0 else DEFAULT_PMI_RATE
    return loan_balance * rate
