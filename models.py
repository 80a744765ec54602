from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class FilingStatus(str, Enum):
    SINGLE = "single"
    JOINT = "joint"


class PriceOutcome(str, Enum):
    RENT = "rent"
    BUY = "buy"
    START_RENT_END_BUY = "start-rent-end-buy"
    START_BUY_END_RENT = "start-buy-end-rent"


@dataclass(frozen=True)
class CalculatorValues:
    # Basic inputs
    home_price: float = 500000.0
    monthly_rent: float = 2000.0
    mortgage_rate: float = 0.0725  # annual, decimal
    mortgage_term_years: int = 30
    down_payment_fraction: float = 0.20
    years_to_stay: int = 10

    # Future projections (annual, decimal)
    home_price_growth: float = 0.03
    rent_growth: float = 0.03
    investment_return: float = 0.045
    inflation_rate: float = 0.03

    # Tax details
    filing_status: FilingStatus = FilingStatus.JOINT
    property_tax_rate: float = 0.0135  # of current home value
    marginal_tax_rate: float = 0.20
    other_deductions: float = 0.0
    tax_cuts_expire: bool = True

    # Closing costs, as fractions of price; 0 means "use country rules"
    buying_cost_fraction: float = 0.04
    selling_cost_fraction: float = 0.06

    # Maintenance and fees
    maintenance_rate: float = 0.01  # of purchase price
    home_insurance_rate: float = 0.0055  # of current home value
    extra_monthly_payment: float = 100.0
    pmi_rate: float = 0.0  # of loan balance, per year; 0 means the default rate where customary

    # Renting costs
    security_deposit_months: float = 1.0  # 0 means "use country default"
    broker_fee_fraction: float = 0.0  # of annual rent
    monthly_renters_insurance: float = 100.0

    # Country-specific toggles
    is_new_build: bool = False
    is_first_time_buyer: bool = False
    is_primary_residence: bool = True
    will_reinvest: bool = True

    start_year: int = field(default_factory=lambda: date.today().year)

    @property
    def down_payment(self) -> float:
        return self.home_price * self.down_payment_fraction

    @property
    def loan_principal(self) -> float:
        return self.home_price - self.down_payment


@dataclass(frozen=True)
class DeductionBenefits:
    tax_savings: float = 0.0
    deductible_interest: float = 0.0
    deductible_property_tax: float = 0.0


@dataclass(frozen=True)
class CapitalGainsTax:
    taxable_gain: float
    tax_amount: float
    exempt: bool


@dataclass(frozen=True)
class CostCalculationResult:
    initial_cost: float
    recurring_cost: float
    opportunity_cost: float
    net_proceeds: float  # negative = cash back at the end
    total_cost: float
    yearly_breakdown: Tuple[float, ...]  # running total at the end of each year
    components: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def years(self) -> int:
        return len(self.yearly_breakdown)

    def decomposition_error(self) -> float:
        """Absolute gap between total_cost and the sum of its four parts."""
        parts = (
            self.initial_cost
            + self.recurring_cost
            + self.opportunity_cost
            + self.net_proceeds
        )
        return abs(self.total_cost - parts)
