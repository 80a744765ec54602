# Import required modules
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Union

from models import CalculatorValues, CostCalculationResult
from finance.mortgage import LoanPeriod, amortize_months, monthly_payment
from finance.country_rules import CountryCode, CountryConfig, get_country_config
from finance.closing_costs import (
    broker_fee,
    buying_closing_cost,
    mortgage_insurance,
    security_deposit,
    selling_closing_cost,
)
from finance.tax_strategies import TaxStrategy, get_tax_strategy

logger = logging.getLogger(__name__)

# Investment gains are assumed taxed at 15% before they compound
INVESTMENT_TAX_DRAG = 0.15

NO_PAYMENTS = LoanPeriod(interest_paid=0.0, principal_paid=0.0, balance=0.0, months_used=0)


def after_tax_return(values: CalculatorValues) -> float:
    return values.investment_return * (1 - INVESTMENT_TAX_DRAG)


@dataclass(frozen=True)
class OwnershipYear:
    """Cash flows of one year of ownership, as seen at the end of that year."""

    year: int  # 1-based
    home_value: float
    start_balance: float
    balance: float
    interest: float
    principal: float
    property_tax: float
    insurance: float
    maintenance: float
    mortgage_insurance: float
    tax_savings: float

    @property
    def cost(self) -> float:
        return (
            self.interest
            + self.principal
            + self.property_tax
            + self.insurance
            + self.maintenance
            + self.mortgage_insurance
            - self.tax_savings
        )


def ownership_years(
    values: CalculatorValues, config: CountryConfig, strategy: TaxStrategy
) -> Iterator[OwnershipYear]:
    """Yield each year of the holding period; the loan is amortized 12 months at a time."""
    price = values.home_price
    balance = values.loan_principal
    payment = monthly_payment(balance, values.mortgage_rate, values.mortgage_term_years)

    for y in range(1, values.years_to_stay + 1):
        home_value = price * (1 + values.home_price_growth) ** y
        inflation = (1 + values.inflation_rate) ** (y - 1)

        start_balance = balance
        if balance > 0:
            period = amortize_months(
                balance,
                values.mortgage_rate,
                payment,
                12,
                extra_principal=values.extra_monthly_payment * inflation,
            )
        else:
            period = NO_PAYMENTS
        balance = period.balance

        property_tax = home_value * values.property_tax_rate
        benefit = strategy.deduction_benefits(
            values.start_year + y - 1,
            start_balance,
            period.interest_paid,
            property_tax,
            values.filing_status,
            values.marginal_tax_rate,
            values.other_deductions,
            y,
            tax_cuts_expire=values.tax_cuts_expire,
        )

        yield OwnershipYear(
            year=y,
            home_value=home_value,
            start_balance=start_balance,
            balance=balance,
            interest=period.interest_paid,
            principal=period.principal_paid,
            property_tax=property_tax,
            insurance=home_value * values.home_insurance_rate,
            maintenance=price * values.maintenance_rate * inflation,
            mortgage_insurance=mortgage_insurance(balance, values, config),
            tax_savings=benefit.tax_savings,
        )


def simulate_buying(
    values: CalculatorValues, country_code: Union[str, CountryCode, None]
) -> CostCalculationResult:
    """
    Total cost of buying over `values.years_to_stay` years.

      initial      = down payment + buying closing cost
      recurring    = mortgage (interest + principal) + property tax + insurance
                     + maintenance + mortgage insurance - tax savings
      opportunity  = foregone after-tax return on the initial outlay, plus the
                     return foregone on each year's outlay from the following year on
      net proceeds = -(sale price - remaining balance - selling costs - CGT)
    """
    config = get_country_config(country_code)
    strategy = get_tax_strategy(country_code, will_reinvest=values.will_reinvest)

    price = values.home_price
    down_payment = values.down_payment
    closing_cost = buying_closing_cost(values, config)
    initial = down_payment + closing_cost
    eff = after_tax_return(values)

    recurring = 0.0
    recurring_opportunity = 0.0
    balance = values.loan_principal
    breakdown = []
    totals = dict.fromkeys(
        (
            "interest",
            "principal",
            "property_tax",
            "insurance",
            "maintenance",
            "mortgage_insurance",
            "tax_savings",
        ),
        0.0,
    )

    for year in ownership_years(values, config, strategy):
        # Last year's opportunity cost compounds along with the outlay that caused it
        recurring_opportunity += (recurring_opportunity + recurring) * eff
        recurring += year.cost
        balance = year.balance
        for key in totals:
            totals[key] += getattr(year, key)

        initial_opportunity = initial * ((1 + eff) ** year.year - 1)
        breakdown.append(initial + recurring + (initial_opportunity + recurring_opportunity))

    # --- Sale at the end of the holding period ---
    years = values.years_to_stay
    sale_price = price * (1 + values.home_price_growth) ** years
    selling_costs = selling_closing_cost(sale_price, values, config)
    cgt = strategy.capital_gains_tax(
        price,
        sale_price,
        years,
        values.filing_status,
        values.is_primary_residence,
    )
    net_proceeds = -(sale_price - balance - selling_costs - cgt.tax_amount)

    opportunity = initial * ((1 + eff) ** years - 1) + recurring_opportunity
    total = initial + recurring + opportunity + net_proceeds
    if breakdown:
        breakdown[-1] = total

    logger.debug(
        "Buying %s over %d years: initial=%.2f recurring=%.2f opportunity=%.2f "
        "net_proceeds=%.2f total=%.2f",
        config.code,
        years,
        initial,
        recurring,
        opportunity,
        net_proceeds,
        total,
    )

    components = {
        "down_payment": down_payment,
        "closing_cost": closing_cost,
        **totals,
        "sale_price": sale_price,
        "remaining_balance": balance,
        "selling_costs": selling_costs,
        "capital_gains_tax": cgt.tax_amount,
    }
    return CostCalculationResult(
        initial_cost=initial,
        recurring_cost=recurring,
        opportunity_cost=opportunity,
        net_proceeds=net_proceeds,
        total_cost=total,
        yearly_breakdown=tuple(breakdown),
        components=MappingProxyType(components),
    )


def simulate_renting(
    values: CalculatorValues, country_code: Union[str, CountryCode, None]
) -> CostCalculationResult:
    """Total cost of renting; the deposit comes back in full at the end."""
    config = get_country_config(country_code)

    deposit = security_deposit(values, config)
    fee = broker_fee(values, config)
    initial = deposit + fee
    eff = after_tax_return(values)
    insurance = values.monthly_renters_insurance * 12

    recurring = 0.0
    recurring_opportunity = 0.0
    rent_total = 0.0
    breakdown = []

    for y in range(1, values.years_to_stay + 1):
        recurring_opportunity += (recurring_opportunity + recurring) * eff
        rent = values.monthly_rent * 12 * (1 + values.rent_growth) ** (y - 1)
        rent_total += rent
        recurring += rent + insurance

        initial_opportunity = initial * ((1 + eff) ** y - 1)
        breakdown.append(initial + recurring + (initial_opportunity + recurring_opportunity))

    years = values.years_to_stay
    net_proceeds = -deposit
    opportunity = initial * ((1 + eff) ** years - 1) + recurring_opportunity
    total = initial + recurring + opportunity + net_proceeds
    if breakdown:
        breakdown[-1] = total

    logger.debug(
        "Renting %s over %d years: initial=%.2f recurring=%.2f opportunity=%.2f total=%.2f",
        config.code,
        years,
        initial,
        recurring,
        opportunity,
        total,
    )

    components = {
        "security_deposit": deposit,
        "broker_fee": fee,
        "rent": rent_total,
        "renters_insurance": insurance * years,
    }
    return CostCalculationResult(
        initial_cost=initial,
        recurring_cost=recurring,
        opportunity_cost=opportunity,
        net_proceeds=net_proceeds,
        total_cost=total,
        yearly_breakdown=tuple(breakdown),
        components=MappingProxyType(components),
    )
