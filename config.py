import logging
from dataclasses import fields
from typing import Any, Dict, Mapping, Optional, Union

from models import CalculatorValues, FilingStatus
from finance.closing_costs import DEFAULT_PMI_RATE
from finance.country_rules import CountryCode, get_country_config, parse_country_code

logger = logging.getLogger(__name__)

# ------------------------- Base values (US-centric) -------------------------
BASE_DEFAULTS: Dict[str, Any] = {
    "home_price": 500000.0,
    "monthly_rent": 2000.0,
    "mortgage_rate": 0.0725,  # decimal
    "mortgage_term_years": 30,
    "down_payment_fraction": 0.20,
    "years_to_stay": 10,
    "home_price_growth": 0.03,
    "rent_growth": 0.03,
    "investment_return": 0.045,
    "inflation_rate": 0.03,
    "filing_status": FilingStatus.JOINT,
    "property_tax_rate": 0.0135,
    "marginal_tax_rate": 0.20,
    "other_deductions": 0.0,
    "tax_cuts_expire": True,
    "buying_cost_fraction": 0.04,
    "selling_cost_fraction": 0.06,
    "maintenance_rate": 0.01,
    "home_insurance_rate": 0.0055,
    "extra_monthly_payment": 100.0,
    "pmi_rate": 0.0,
    "security_deposit_months": 1.0,
    "broker_fee_fraction": 0.0,
    "monthly_renters_insurance": 100.0,
    "is_new_build": False,
    "is_first_time_buyer": False,
    "is_primary_residence": True,
    "will_reinvest": True,
}

# ------------------------- Market values per country -------------------------
# Local currency; rates are decimals.
DEFAULT_VALUES: Dict[str, Dict[str, Any]] = {
    "US": {
        "home_price": 500000.0,
        "monthly_rent": 2000.0,
        "mortgage_rate": 0.0725,
        "extra_monthly_payment": 100.0,
        "monthly_renters_insurance": 100.0,
        "marginal_tax_rate": 0.22,
        "other_deductions": 0.0,
    },
    "CA": {
        "home_price": 700000.0,
        "monthly_rent": 2200.0,
        "mortgage_rate": 0.055,
        "extra_monthly_payment": 100.0,
        "monthly_renters_insurance": 50.0,
        "marginal_tax_rate": 0.29,
        "other_deductions": 0.0,
    },
    "MX": {
        "home_price": 4000000.0,
        "monthly_rent": 15000.0,
        "mortgage_rate": 0.12,
        "extra_monthly_payment": 500.0,
        "monthly_renters_insurance": 200.0,
        "marginal_tax_rate": 0.30,
        "other_deductions": 0.0,
    },
    "DE": {
        "home_price": 400000.0,
        "monthly_rent": 1200.0,
        "mortgage_rate": 0.038,
        "extra_monthly_payment": 100.0,
        "monthly_renters_insurance": 15.0,
        "marginal_tax_rate": 0.42,
        "other_deductions": 0.0,
    },
    "FR": {
        "home_price": 350000.0,
        "monthly_rent": 1100.0,
        "mortgage_rate": 0.035,
        "extra_monthly_payment": 100.0,
        "monthly_renters_insurance": 15.0,
        "marginal_tax_rate": 0.30,
        "other_deductions": 0.0,
    },
    "GB": {
        "home_price": 350000.0,
        "monthly_rent": 1500.0,
        "mortgage_rate": 0.045,
        "extra_monthly_payment": 100.0,
        "monthly_renters_insurance": 20.0,
        "marginal_tax_rate": 0.40,
        "other_deductions": 0.0,
    },
    "IT": {
        "home_price": 250000.0,
        "monthly_rent": 900.0,
        "mortgage_rate": 0.038,
        "extra_monthly_payment": 80.0,
        "monthly_renters_insurance": 15.0,
        "marginal_tax_rate": 0.38,
        "other_deductions": 0.0,
    },
    "ES": {
        "home_price": 250000.0,
        "monthly_rent": 900.0,
        "mortgage_rate": 0.035,
        "extra_monthly_payment": 80.0,
        "monthly_renters_insurance": 15.0,
        "marginal_tax_rate": 0.37,
        "other_deductions": 0.0,
    },
}

_FIELDS = {f.name: f for f in fields(CalculatorValues)}


def country_rule_defaults(country_code: Union[str, CountryCode, None]) -> Dict[str, Any]:
    """Values implied by a country's rule table (rates, typical term, typical fees)."""
    config = get_country_config(country_code)
    return {
        "property_tax_rate": config.defaults.property_tax_rate,
        "home_insurance_rate": config.defaults.home_insurance_rate,
        "maintenance_rate": config.defaults.maintenance_rate,
        "inflation_rate": config.defaults.inflation_rate,
        "home_price_growth": config.defaults.home_price_growth,
        "investment_return": config.defaults.investment_return,
        "mortgage_term_years": config.mortgage_rules.typical_term,
        "down_payment_fraction": config.mortgage_rules.typical_down_payment,
        "buying_cost_fraction": 0.0,  # priced from the closing-cost rules
        "selling_cost_fraction": config.closing_costs.agent_commission,
        "security_deposit_months": float(config.renting_rules.typical_security_deposit),
        "broker_fee_fraction": config.renting_rules.typical_broker_fee,
        "pmi_rate": DEFAULT_PMI_RATE if config.mortgage_rules.has_mortgage_insurance else 0.0,
    }


def apply_country_defaults(
    country_code: Union[str, CountryCode, None], **overrides: Any
) -> CalculatorValues:
    """Base values, then the country's rule defaults, then its market values, then `overrides`."""
    unknown = set(overrides) - set(_FIELDS)
    if unknown:
        raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")

    merged = dict(BASE_DEFAULTS)
    merged.update(country_rule_defaults(country_code))
    code = parse_country_code(country_code)
    if code is not None:
        merged.update(DEFAULT_VALUES[code.value])
    merged.update(overrides)
    return CalculatorValues(**merged)


def _coerce(name: str, value: Any) -> Optional[Any]:
    """`value` converted to the field's type, or None if it does not fit."""
    default = _FIELDS[name].type
    if name == "filing_status":
        try:
            return FilingStatus(value)
        except ValueError:
            return None
    if default in (bool, "bool"):
        return value if isinstance(value, bool) else None
    if isinstance(value, bool):
        return None
    if default in (int, "int"):
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def values_from_mapping(
    data: Mapping[str, Any], country_code: Union[str, CountryCode, None] = None
) -> CalculatorValues:
    """
    Build a record from an untrusted mapping (saved scenario, query string, JSON body).
    Unknown keys and values of the wrong type are dropped; the country's defaults fill the gaps.
    """
    accepted = {}
    for key, value in data.items():
        if key not in _FIELDS:
            logger.debug("Ignoring unknown key %r", key)
            continue
        coerced = _coerce(key, value)
        if coerced is None:
            logger.debug("Ignoring %r: unexpected value %r", key, value)
            continue
        accepted[key] = coerced

    if country_code is None:
        return CalculatorValues(**{**BASE_DEFAULTS, **accepted})
    return apply_country_defaults(country_code, **accepted)
