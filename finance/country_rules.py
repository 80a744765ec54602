"""
Country rule tables for the rent-vs-buy engine.

Each country has its own:
  - tax treatment (interest deductibility, loan caps, capital gains rate/exemption)
  - closing costs (notary, transfer tax, registration, agent commission)
  - mortgage conventions (typical term, down payment, mortgage insurance threshold)
  - renting conventions (security deposit, broker fees)

All tables are read-only module data. Rates and fees are decimals of the
relevant base (price, loan, annual rent); amounts are in local currency.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from finance.taxes import stamp_duty_land_tax
from models import CalculatorValues

logger = logging.getLogger(__name__)


class CountryCode(str, Enum):
    US = "US"
    CA = "CA"
    MX = "MX"
    DE = "DE"
    FR = "FR"
    GB = "GB"
    IT = "IT"
    ES = "ES"


_ALIASES = {"UK": CountryCode.GB}


@dataclass(frozen=True)
class TaxRules:
    mortgage_interest_deductible: bool
    capital_gains_tax_rate: float
    capital_gains_exemption: float  # primary residence exemption amount
    property_tax_deductible: bool
    standard_deduction_single: float
    standard_deduction_joint: float
    max_deductible_interest: Optional[float] = None
    salt_cap: Optional[float] = None


@dataclass(frozen=True)
class ClosingCosts:
    notary_fees: float
    transfer_tax: float
    transfer_tax_varies_by_region: bool
    registration_fees: float
    agent_commission: float
    agent_commission_paid_by: str  # "buyer" | "seller" | "split"
    # Exact transfer tax as f(price, first_time_buyer); replaces the flat rate
    transfer_tax_function: Optional[Callable[[float, bool], float]] = None
    new_build_notary_fees: Optional[float] = None
    primary_residence_transfer_tax: Optional[float] = None

    def buyer_agent_share(self) -> float:
        if self.agent_commission_paid_by == "buyer":
            return self.agent_commission
        if self.agent_commission_paid_by == "split":
            return self.agent_commission / 2
        return 0.0

    def seller_agent_share(self) -> float:
        if self.agent_commission_paid_by == "seller":
            return self.agent_commission
        if self.agent_commission_paid_by == "split":
            return self.agent_commission / 2
        return 0.0


@dataclass(frozen=True)
class MortgageRules:
    typical_term: int
    available_terms: Tuple[int, ...]
    min_down_payment: float
    typical_down_payment: float
    has_mortgage_insurance: bool
    mortgage_insurance_threshold: float  # LTV above which insurance applies
    typical_rate_type: str  # "fixed" | "variable" | "both"
    fixed_rate_period: Optional[int] = None


@dataclass(frozen=True)
class RentingRules:
    typical_security_deposit: float  # months of rent
    broker_fees_common: bool
    typical_broker_fee: float  # fraction of annual rent
    max_security_deposit: Optional[float] = None  # months of rent


@dataclass(frozen=True)
class CountryDefaults:
    property_tax_rate: float
    home_insurance_rate: float
    maintenance_rate: float
    inflation_rate: float
    home_price_growth: float
    investment_return: float


@dataclass(frozen=True)
class CountryConfig:
    code: str
    name: str
    currency: str
    tax_rules: TaxRules
    closing_costs: ClosingCosts
    mortgage_rules: MortgageRules
    renting_rules: RentingRules
    defaults: CountryDefaults
    labels: Dict[str, str] = field(default_factory=dict)

    def standard_deduction(self, joint: bool) -> float:
        rules = self.tax_rules
        return rules.standard_deduction_joint if joint else rules.standard_deduction_single


# ------------------------- United States -------------------------
# Interest deduction up to a $750k loan, $250k/$500k exclusion on sale,
# SALT capped at $10k, 30-year fixed is the norm.
US_CONFIG = CountryConfig(
    code="US",
    name="United States",
    currency="USD",
    tax_rules=TaxRules(
        mortgage_interest_deductible=True,
        max_deductible_interest=750000,  # loan cap
        capital_gains_tax_rate=0.15,
        capital_gains_exemption=500000,  # joint; 250k single
        property_tax_deductible=True,
        salt_cap=10000,
        standard_deduction_single=14600,
        standard_deduction_joint=29200,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.0,
        transfer_tax=0.01,  # varies by state
        transfer_tax_varies_by_region=True,
        registration_fees=0.002,
        agent_commission=0.05,
        agent_commission_paid_by="seller",
    ),
    mortgage_rules=MortgageRules(
        typical_term=30,
        available_terms=(15, 20, 30),
        min_down_payment=0.03,
        typical_down_payment=0.20,
        has_mortgage_insurance=True,
        mortgage_insurance_threshold=0.80,
        typical_rate_type="fixed",
    ),
    renting_rules=RentingRules(
        typical_security_deposit=1,
        broker_fees_common=True,  # NYC, Boston
        typical_broker_fee=0.0833,  # ~1 month
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.012,
        home_insurance_rate=0.0035,
        maintenance_rate=0.01,
        inflation_rate=0.025,
        home_price_growth=0.03,
        investment_return=0.07,
    ),
)

# ------------------------- Canada -------------------------
# No interest deduction, principal residence exempt, land transfer tax by province.
CA_CONFIG = CountryConfig(
    code="CA",
    name="Canada",
    currency="CAD",
    tax_rules=TaxRules(
        mortgage_interest_deductible=False,
        capital_gains_tax_rate=0.25,
        capital_gains_exemption=math.inf,
        property_tax_deductible=False,
        standard_deduction_single=15705,  # basic personal amount
        standard_deduction_joint=15705,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.005,
        transfer_tax=0.015,
        transfer_tax_varies_by_region=True,
        registration_fees=0.001,
        agent_commission=0.05,
        agent_commission_paid_by="seller",
    ),
    mortgage_rules=MortgageRules(
        typical_term=25,
        available_terms=(15, 20, 25, 30),
        min_down_payment=0.05,
        typical_down_payment=0.20,
        has_mortgage_insurance=True,  # CMHC
        mortgage_insurance_threshold=0.80,
        typical_rate_type="variable",
        fixed_rate_period=5,
    ),
    renting_rules=RentingRules(
        typical_security_deposit=0.5,
        max_security_deposit=1,
        broker_fees_common=False,
        typical_broker_fee=0.0,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.01,
        home_insurance_rate=0.003,
        maintenance_rate=0.01,
        inflation_rate=0.02,
        home_price_growth=0.04,
        investment_return=0.06,
    ),
    labels={"transfer_tax": "Land Transfer Tax"},
)

# ------------------------- Mexico -------------------------
MX_CONFIG = CountryConfig(
    code="MX",
    name="Mexico",
    currency="MXN",
    tax_rules=TaxRules(
        mortgage_interest_deductible=True,
        max_deductible_interest=3500000,
        capital_gains_tax_rate=0.35,  # ISR
        capital_gains_exemption=700000,
        property_tax_deductible=False,
        standard_deduction_single=0,
        standard_deduction_joint=0,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.04,
        transfer_tax=0.02,
        transfer_tax_varies_by_region=True,
        registration_fees=0.01,
        agent_commission=0.05,
        agent_commission_paid_by="seller",
    ),
    mortgage_rules=MortgageRules(
        typical_term=20,
        available_terms=(10, 15, 20),
        min_down_payment=0.10,
        typical_down_payment=0.20,
        has_mortgage_insurance=True,
        mortgage_insurance_threshold=0.80,
        typical_rate_type="fixed",
    ),
    renting_rules=RentingRules(
        typical_security_deposit=1,
        max_security_deposit=1,
        broker_fees_common=True,
        typical_broker_fee=0.0833,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.001,  # predial
        home_insurance_rate=0.005,
        maintenance_rate=0.015,
        inflation_rate=0.04,
        home_price_growth=0.05,
        investment_return=0.08,
    ),
    labels={"property_tax": "Predial"},
)

# ------------------------- Germany -------------------------
# Spekulationsfrist: gains exempt after 10 years. Notary mandatory.
DE_CONFIG = CountryConfig(
    code="DE",
    name="Germany",
    currency="EUR",
    tax_rules=TaxRules(
        mortgage_interest_deductible=False,
        capital_gains_tax_rate=0.25,  # Abgeltungssteuer
        capital_gains_exemption=math.inf,
        property_tax_deductible=False,
        standard_deduction_single=11604,
        standard_deduction_joint=23208,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.015,
        transfer_tax=0.05,  # Grunderwerbsteuer, 3.5-6.5% by state
        transfer_tax_varies_by_region=True,
        registration_fees=0.005,  # Grundbuchamt
        agent_commission=0.0357,
        agent_commission_paid_by="split",
    ),
    mortgage_rules=MortgageRules(
        typical_term=30,
        available_terms=(10, 15, 20, 25, 30),
        min_down_payment=0.20,
        typical_down_payment=0.20,
        has_mortgage_insurance=False,
        mortgage_insurance_threshold=1.0,
        typical_rate_type="fixed",
        fixed_rate_period=10,
    ),
    renting_rules=RentingRules(
        typical_security_deposit=3,  # Kaution
        max_security_deposit=3,
        broker_fees_common=False,  # Bestellerprinzip
        typical_broker_fee=0.0,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.0025,
        home_insurance_rate=0.002,
        maintenance_rate=0.01,
        inflation_rate=0.02,
        home_price_growth=0.03,
        investment_return=0.05,
    ),
    labels={"property_tax": "Grundsteuer", "transfer_tax": "Grunderwerbsteuer"},
)

# ------------------------- France -------------------------
# Frais de notaire include transfer taxes: ~8% existing, ~3% new build.
FR_CONFIG = CountryConfig(
    code="FR",
    name="France",
    currency="EUR",
    tax_rules=TaxRules(
        mortgage_interest_deductible=False,
        capital_gains_tax_rate=0.36,  # 19% + 17.2% social charges
        capital_gains_exemption=math.inf,
        property_tax_deductible=False,
        standard_deduction_single=0,
        standard_deduction_joint=0,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.08,
        transfer_tax=0.0,
        transfer_tax_varies_by_region=False,
        registration_fees=0.0,
        agent_commission=0.05,
        agent_commission_paid_by="seller",
        new_build_notary_fees=0.03,
    ),
    mortgage_rules=MortgageRules(
        typical_term=20,
        available_terms=(10, 15, 20, 25),
        min_down_payment=0.10,
        typical_down_payment=0.20,
        has_mortgage_insurance=True,  # assurance emprunteur
        mortgage_insurance_threshold=1.0,
        typical_rate_type="fixed",
    ),
    renting_rules=RentingRules(
        typical_security_deposit=1,
        max_security_deposit=2,
        broker_fees_common=True,
        typical_broker_fee=0.0833,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.01,
        home_insurance_rate=0.002,
        maintenance_rate=0.01,
        inflation_rate=0.02,
        home_price_growth=0.025,
        investment_return=0.05,
    ),
    labels={"property_tax": "Taxe Foncière"},
)

# ------------------------- United Kingdom -------------------------
# SDLT is computed from the bands (see finance.taxes), not the flat rate below.
GB_CONFIG = CountryConfig(
    code="GB",
    name="United Kingdom",
    currency="GBP",
    tax_rules=TaxRules(
        mortgage_interest_deductible=False,
        capital_gains_tax_rate=0.24,
        capital_gains_exemption=math.inf,  # PPR relief
        property_tax_deductible=False,
        standard_deduction_single=12570,  # personal allowance
        standard_deduction_joint=12570,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.0,
        transfer_tax=0.05,
        transfer_tax_varies_by_region=True,  # Scotland has LBTT
        registration_fees=0.002,  # Land Registry
        agent_commission=0.015,
        agent_commission_paid_by="seller",
        transfer_tax_function=stamp_duty_land_tax,
    ),
    mortgage_rules=MortgageRules(
        typical_term=25,
        available_terms=(15, 20, 25, 30, 35),
        min_down_payment=0.05,
        typical_down_payment=0.10,
        has_mortgage_insurance=False,
        mortgage_insurance_threshold=1.0,
        typical_rate_type="both",
        fixed_rate_period=5,
    ),
    renting_rules=RentingRules(
        typical_security_deposit=1.15,  # 5 weeks
        max_security_deposit=1.15,
        broker_fees_common=False,  # banned in 2019
        typical_broker_fee=0.0,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.005,  # council tax
        home_insurance_rate=0.002,
        maintenance_rate=0.01,
        inflation_rate=0.02,
        home_price_growth=0.03,
        investment_return=0.05,
    ),
    labels={"property_tax": "Council Tax", "transfer_tax": "Stamp Duty"},
)

# ------------------------- Italy -------------------------
# Registro is 9% for second homes, 2% "prima casa".
IT_CONFIG = CountryConfig(
    code="IT",
    name="Italy",
    currency="EUR",
    tax_rules=TaxRules(
        mortgage_interest_deductible=True,  # 19% of up to 4000/year
        max_deductible_interest=4000,
        capital_gains_tax_rate=0.26,
        capital_gains_exemption=math.inf,
        property_tax_deductible=False,
        standard_deduction_single=0,
        standard_deduction_joint=0,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.025,
        transfer_tax=0.09,
        transfer_tax_varies_by_region=False,
        registration_fees=0.005,
        agent_commission=0.04,
        agent_commission_paid_by="split",
        primary_residence_transfer_tax=0.02,
    ),
    mortgage_rules=MortgageRules(
        typical_term=25,
        available_terms=(10, 15, 20, 25, 30),
        min_down_payment=0.20,
        typical_down_payment=0.20,
        has_mortgage_insurance=False,
        mortgage_insurance_threshold=1.0,
        typical_rate_type="both",
    ),
    renting_rules=RentingRules(
        typical_security_deposit=3,
        max_security_deposit=3,
        broker_fees_common=True,
        typical_broker_fee=0.0833,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.004,  # IMU
        home_insurance_rate=0.002,
        maintenance_rate=0.01,
        inflation_rate=0.02,
        home_price_growth=0.02,
        investment_return=0.04,
    ),
    labels={"property_tax": "IMU"},
)

# ------------------------- Spain -------------------------
ES_CONFIG = CountryConfig(
    code="ES",
    name="Spain",
    currency="EUR",
    tax_rules=TaxRules(
        mortgage_interest_deductible=False,  # removed in 2013
        capital_gains_tax_rate=0.23,
        capital_gains_exemption=math.inf,  # if reinvested
        property_tax_deductible=False,
        standard_deduction_single=5550,
        standard_deduction_joint=5550,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.01,
        transfer_tax=0.08,  # ITP 6-10%
        transfer_tax_varies_by_region=True,
        registration_fees=0.005,
        agent_commission=0.05,
        agent_commission_paid_by="seller",
    ),
    mortgage_rules=MortgageRules(
        typical_term=25,
        available_terms=(15, 20, 25, 30),
        min_down_payment=0.20,
        typical_down_payment=0.20,
        has_mortgage_insurance=False,
        mortgage_insurance_threshold=1.0,
        typical_rate_type="variable",
    ),
    renting_rules=RentingRules(
        typical_security_deposit=1,
        max_security_deposit=2,
        broker_fees_common=True,
        typical_broker_fee=0.0833,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.006,  # IBI
        home_insurance_rate=0.002,
        maintenance_rate=0.01,
        inflation_rate=0.025,
        home_price_growth=0.03,
        investment_return=0.04,
    ),
    labels={"property_tax": "IBI", "transfer_tax": "ITP"},
)

# ------------------------- Unmapped countries -------------------------
# Best-effort table: no deductions, moderate closing costs, flat 20% CGT.
GENERIC_CONFIG = CountryConfig(
    code="XX",
    name="Other",
    currency="USD",
    tax_rules=TaxRules(
        mortgage_interest_deductible=False,
        capital_gains_tax_rate=0.20,
        capital_gains_exemption=math.inf,
        property_tax_deductible=False,
        standard_deduction_single=0,
        standard_deduction_joint=0,
    ),
    closing_costs=ClosingCosts(
        notary_fees=0.01,
        transfer_tax=0.02,
        transfer_tax_varies_by_region=True,
        registration_fees=0.005,
        agent_commission=0.05,
        agent_commission_paid_by="seller",
    ),
    mortgage_rules=MortgageRules(
        typical_term=25,
        available_terms=(15, 20, 25, 30),
        min_down_payment=0.10,
        typical_down_payment=0.20,
        has_mortgage_insurance=False,
        mortgage_insurance_threshold=1.0,
        typical_rate_type="both",
    ),
    renting_rules=RentingRules(
        typical_security_deposit=1,
        broker_fees_common=False,
        typical_broker_fee=0.0,
    ),
    defaults=CountryDefaults(
        property_tax_rate=0.01,
        home_insurance_rate=0.003,
        maintenance_rate=0.01,
        inflation_rate=0.025,
        home_price_growth=0.03,
        investment_return=0.05,
    ),
)

COUNTRY_CONFIGS: Dict[CountryCode, CountryConfig] = {
    CountryCode.US: US_CONFIG,
    CountryCode.CA: CA_CONFIG,
    CountryCode.MX: MX_CONFIG,
    CountryCode.DE: DE_CONFIG,
    CountryCode.FR: FR_CONFIG,
    CountryCode.GB: GB_CONFIG,
    CountryCode.IT: IT_CONFIG,
    CountryCode.ES: ES_CONFIG,
}

SUPPORTED_COUNTRIES: List[Tuple[str, str]] = [
    (code.value, config.name) for code, config in COUNTRY_CONFIGS.items()
]


def parse_country_code(code: Union[str, CountryCode, None]) -> Optional[CountryCode]:
    """Return the CountryCode for `code`, or None if the country is not modelled."""
    if isinstance(code, CountryCode):
        return code
    if not code:
        return None
    key = str(code).strip().upper()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return CountryCode(key)
    except ValueError:
        return None


def get_country_config(code: Union[str, CountryCode, None]) -> CountryConfig:
    parsed = parse_country_code(code)
    if parsed is None:
        logger.info("No rule table for country %r; using generic rules", code)
        return GENERIC_CONFIG
    return COUNTRY_CONFIGS[parsed]


def validate_values(values: CalculatorValues, config: CountryConfig) -> List[str]:
    """
    Soft checks for a boundary layer building CalculatorValues.
    The calculators never call this; an empty list means nothing looks unusual.
    """
    warnings = []
    rules = config.mortgage_rules

    if values.down_payment_fraction < rules.min_down_payment:
        warnings.append(
            f"Down payment ({values.down_payment_fraction * 100:.1f}%) is below typical minimum "
            f"({rules.min_down_payment * 100:.1f}%) for {config.name}"
        )

    if values.mortgage_term_years not in rules.available_terms:
        terms = ", ".join(str(t) for t in rules.available_terms)
        warnings.append(
            f"{values.mortgage_term_years}-year mortgage is uncommon in {config.name}. "
            f"Typical terms: {terms} years"
        )

    max_deposit = config.renting_rules.max_security_deposit
    if max_deposit is not None and values.security_deposit_months > max_deposit:
        warnings.append(
            f"Security deposit of {values.security_deposit_months:g} months exceeds the legal "
            f"maximum of {max_deposit:g} months in {config.name}"
        )

    return warnings
