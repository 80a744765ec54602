"""
Country tax strategies.

Every strategy answers the same four questions for the buying simulation:
  - what the owner saves each year from housing deductions
  - how much capital gains tax is due on sale
  - the standard deduction for a year and filing status
  - the loan size eligible for interest deduction

Strategies are self-contained; they share the TaxStrategy protocol and nothing else.
Pick one with get_tax_strategy(); unmodelled countries get FallbackTaxStrategy.
"""
import logging
import math
from typing import Dict, Optional, Protocol, Type, Union

from finance.country_rules import (
    CountryCode,
    CountryConfig,
    GENERIC_CONFIG,
    get_country_config,
    parse_country_code,
)
from finance.taxes import (
    canada_taxable_capital_gain,
    france_income_tax_taper,
    france_social_charges_taper,
    spain_progressive_gains_tax,
)
from models import CapitalGainsTax, DeductionBenefits, FilingStatus

logger = logging.getLogger(__name__)

NO_DEDUCTION = DeductionBenefits()


def _is_joint(filing_status: Union[FilingStatus, str]) -> bool:
    return FilingStatus(filing_status) == FilingStatus.JOINT


def _exempt() -> CapitalGainsTax:
    return CapitalGainsTax(taxable_gain=0.0, tax_amount=0.0, exempt=True)


class TaxStrategy(Protocol):
    def deduction_benefits(
        self,
        year: int,
        loan_balance: float,
        interest_paid: float,
        property_tax_paid: float,
        filing_status: FilingStatus,
        marginal_rate: float,
        other_deductions: float,
        years_owned: int,
        tax_cuts_expire: bool = True,
    ) -> DeductionBenefits:
        ...

    def capital_gains_tax(
        self,
        purchase_price: float,
        sale_price: float,
        years_owned: int,
        filing_status: FilingStatus,
        is_primary_residence: bool,
    ) -> CapitalGainsTax:
        ...

    def standard_deduction(self, year: int, filing_status: FilingStatus) -> float:
        ...

    def loan_cap(self, year: int, filing_status: FilingStatus) -> float:
        ...


# ------------------------- United States -------------------------


class USTaxStrategy:
    """
    Mortgage interest deduction with the TCJA loan cap, SALT cap on property
    tax, and the Section 121 exclusion on sale.

    `tax_cuts_expire` models the TCJA provisions lapsing after TCJA_LAST_YEAR:
    the loan cap and standard deduction revert to pre-2018 values and the SALT
    cap disappears.
    """

    TCJA_LAST_YEAR = 2025

    TCJA_LOAN_CAP = {False: 375_000, True: 750_000}
    PRE_TCJA_LOAN_CAP = {False: 500_000, True: 1_000_000}
    TCJA_STANDARD = {False: 14_600, True: 29_200}
    PRE_TCJA_STANDARD = {False: 8_126, True: 16_253}

    SALT_CAP = 10_000
    CAPITAL_GAINS_RATE = 0.15
    EXCLUSION = {False: 250_000, True: 500_000}
    EXCLUSION_MIN_YEARS = 2

    def _tcja_applies(self, year: int, tax_cuts_expire: bool) -> bool:
        return not tax_cuts_expire or year <= self.TCJA_LAST_YEAR

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        cap = self.loan_cap(year, filing_status, tax_cuts_expire)
        fraction = min(1.0, cap / loan_balance) if loan_balance > 0 else 1.0
        deductible_interest = interest_paid * fraction

        salt_cap = self.SALT_CAP if self._tcja_applies(year, tax_cuts_expire) else math.inf
        deductible_property_tax = min(property_tax_paid, salt_cap)

        itemized = deductible_interest + deductible_property_tax + other_deductions
        standard = self.standard_deduction(year, filing_status, tax_cuts_expire)

        # Only the excess over what the filer would deduct anyway is a housing benefit
        excess = max(0.0, itemized - max(other_deductions, standard))
        return DeductionBenefits(
            tax_savings=excess * marginal_rate,
            deductible_interest=deductible_interest,
            deductible_property_tax=deductible_property_tax,
        )

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        gain = sale_price - purchase_price
        qualifies = is_primary_residence and years_owned >= self.EXCLUSION_MIN_YEARS
        exclusion = self.EXCLUSION[_is_joint(filing_status)] if qualifies else 0.0
        taxable = max(0.0, gain - exclusion)
        return CapitalGainsTax(
            taxable_gain=taxable,
            tax_amount=taxable * self.CAPITAL_GAINS_RATE,
            exempt=qualifies,
        )

    def standard_deduction(self, year, filing_status, tax_cuts_expire=True):
        table = (
            self.TCJA_STANDARD
            if self._tcja_applies(year, tax_cuts_expire)
            else self.PRE_TCJA_STANDARD
        )
        return float(table[_is_joint(filing_status)])

    def loan_cap(self, year, filing_status, tax_cuts_expire=True):
        table = (
            self.TCJA_LOAN_CAP
            if self._tcja_applies(year, tax_cuts_expire)
            else self.PRE_TCJA_LOAN_CAP
        )
        return float(table[_is_joint(filing_status)])


# ------------------------- United Kingdom -------------------------


class UKTaxStrategy:
    """
    No relief on owner-occupier mortgage interest. Principal Private Residence
    relief exempts the main home; other residential gains pay the higher rate
    after the annual exempt amount.
    """

    CGT_HIGHER_RATE = 0.24
    CGT_ANNUAL_EXEMPT = 3_000
    PERSONAL_ALLOWANCE = 12_570

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        return NO_DEDUCTION

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        if is_primary_residence:
            return _exempt()
        gain = sale_price - purchase_price
        taxable = max(0.0, gain - self.CGT_ANNUAL_EXEMPT)
        return CapitalGainsTax(
            taxable_gain=taxable,
            tax_amount=taxable * self.CGT_HIGHER_RATE,
            exempt=False,
        )

    def standard_deduction(self, year, filing_status):
        return float(self.PERSONAL_ALLOWANCE)

    def loan_cap(self, year, filing_status):
        return math.inf


# ------------------------- Germany -------------------------


class GermanyTaxStrategy:
    """
    Private sales are taxed only inside the 10-year Spekulationsfrist; owner
    occupation exempts the gain outright. Taxable gains pay the flat rate plus
    the 5.5% solidarity surcharge.
    """

    SPECULATION_PERIOD_YEARS = 10
    SOLIDARITY_SURCHARGE_RATE = 0.055

    def __init__(self, config: Optional[CountryConfig] = None):
        self.config = config or get_country_config(CountryCode.DE)

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        return NO_DEDUCTION

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        gain = sale_price - purchase_price
        if (
            is_primary_residence
            or years_owned >= self.SPECULATION_PERIOD_YEARS
            or gain <= 0
        ):
            return _exempt()

        rate = self.config.tax_rules.capital_gains_tax_rate
        effective = rate * (1 + self.SOLIDARITY_SURCHARGE_RATE)
        return CapitalGainsTax(taxable_gain=gain, tax_amount=gain * effective, exempt=False)

    def standard_deduction(self, year, filing_status):
        # Grundfreibetrag
        return float(self.config.standard_deduction(_is_joint(filing_status)))

    def loan_cap(self, year, filing_status):
        return math.inf


# ------------------------- France -------------------------


class FranceTaxStrategy:
    """
    Résidence principale is exempt with no holding period. Other sales pay 19%
    income tax and 17.2% social charges, each on the gain after its own
    holding-period abatement (see finance.taxes for the schedules).
    """

    INCOME_TAX_RATE = 0.19
    SOCIAL_CHARGES_RATE = 0.172

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        return NO_DEDUCTION

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        if is_primary_residence:
            return _exempt()
        gain = sale_price - purchase_price
        if gain <= 0:
            return CapitalGainsTax(taxable_gain=0.0, tax_amount=0.0, exempt=False)

        taxable_income_part = gain * (1 - france_income_tax_taper(years_owned))
        taxable_social_part = gain * (1 - france_social_charges_taper(years_owned))
        tax = (
            taxable_income_part * self.INCOME_TAX_RATE
            + taxable_social_part * self.SOCIAL_CHARGES_RATE
        )
        # The income-tax base is what a notaire reports as the taxable gain
        return CapitalGainsTax(
            taxable_gain=max(0.0, taxable_income_part),
            tax_amount=max(0.0, tax),
            exempt=False,
        )

    def standard_deduction(self, year, filing_status):
        return 0.0  # quotient familial, no standard deduction

    def loan_cap(self, year, filing_status):
        return math.inf


# ------------------------- Canada -------------------------


class CanadaTaxStrategy:
    """
    Principal Residence Exemption covers the main home. Other gains are
    included in income at 50% up to $250k and two-thirds above, then taxed at
    the table's marginal-rate proxy.
    """

    INCLUSION_RATE = 0.50
    HIGHER_INCLUSION_RATE = 0.6667
    HIGHER_INCLUSION_THRESHOLD = 250_000

    def __init__(self, config: Optional[CountryConfig] = None):
        self.config = config or get_country_config(CountryCode.CA)

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        return NO_DEDUCTION

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        if is_primary_residence:
            return _exempt()
        gain = sale_price - purchase_price
        if gain <= 0:
            return CapitalGainsTax(taxable_gain=0.0, tax_amount=0.0, exempt=False)

        included = canada_taxable_capital_gain(
            gain,
            self.INCLUSION_RATE,
            self.HIGHER_INCLUSION_RATE,
            self.HIGHER_INCLUSION_THRESHOLD,
        )
        rate = self.config.tax_rules.capital_gains_tax_rate
        return CapitalGainsTax(taxable_gain=included, tax_amount=included * rate, exempt=False)

    def standard_deduction(self, year, filing_status):
        # Basic personal amount; each spouse claims their own
        return float(self.config.tax_rules.standard_deduction_single)

    def loan_cap(self, year, filing_status):
        return math.inf


# ------------------------- Spain -------------------------


class SpainTaxStrategy:
    """
    Vivienda habitual is exempt when the proceeds are reinvested in a new main
    home. Otherwise the gain pays the progressive savings schedule plus a
    simplified plusvalía municipal.
    """

    PLUSVALIA_RATE = 0.01

    def __init__(self, will_reinvest: bool = True, config: Optional[CountryConfig] = None):
        self.will_reinvest = will_reinvest
        self.config = config or get_country_config(CountryCode.ES)

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        return NO_DEDUCTION

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        if is_primary_residence and self.will_reinvest:
            return _exempt()
        gain = sale_price - purchase_price
        if gain <= 0:
            return CapitalGainsTax(taxable_gain=0.0, tax_amount=0.0, exempt=False)

        tax = spain_progressive_gains_tax(gain) + gain * self.PLUSVALIA_RATE
        return CapitalGainsTax(taxable_gain=gain, tax_amount=tax, exempt=False)

    def standard_deduction(self, year, filing_status):
        # Mínimo personal
        return float(self.config.tax_rules.standard_deduction_single)

    def loan_cap(self, year, filing_status):
        return math.inf


# ------------------------- Italy -------------------------


class ItalyTaxStrategy:
    """19% detrazione on up to €4,000 of interest; gains exempt after 5 years as main home."""

    MAX_DEDUCTIBLE_INTEREST = 4_000
    DEDUCTION_RATE = 0.19
    PRIMARY_RESIDENCE_MIN_YEARS = 5
    TYPICAL_RATE = 0.05  # converts the interest cap into an equivalent loan size

    def __init__(self, config: Optional[CountryConfig] = None):
        self.config = config or get_country_config(CountryCode.IT)

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        deductible = min(max(0.0, interest_paid), self.MAX_DEDUCTIBLE_INTEREST)
        return DeductionBenefits(
            tax_savings=deductible * self.DEDUCTION_RATE,
            deductible_interest=deductible,
            deductible_property_tax=0.0,
        )

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        qualifies = (
            is_primary_residence and years_owned >= self.PRIMARY_RESIDENCE_MIN_YEARS
        )
        gain = sale_price - purchase_price
        taxable = 0.0 if qualifies else max(0.0, gain)
        rate = self.config.tax_rules.capital_gains_tax_rate
        return CapitalGainsTax(taxable_gain=taxable, tax_amount=taxable * rate, exempt=qualifies)

    def standard_deduction(self, year, filing_status):
        return 0.0

    def loan_cap(self, year, filing_status):
        return self.MAX_DEDUCTIBLE_INTEREST / self.TYPICAL_RATE


# ------------------------- Mexico -------------------------


class MexicoTaxStrategy:
    """Interest deductible at the marginal rate up to a UDI-based limit; partial ISR exemption on sale."""

    ISR_RATE = 0.35

    def __init__(self, config: Optional[CountryConfig] = None):
        self.config = config or get_country_config(CountryCode.MX)

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        cap = self.config.tax_rules.max_deductible_interest or 0.0
        deductible = min(max(0.0, interest_paid), cap)
        return DeductionBenefits(
            tax_savings=deductible * marginal_rate,
            deductible_interest=deductible,
            deductible_property_tax=0.0,
        )

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        gain = sale_price - purchase_price
        exemption = self.config.tax_rules.capital_gains_exemption if is_primary_residence else 0.0
        taxable = max(0.0, gain - exemption)
        return CapitalGainsTax(
            taxable_gain=taxable,
            tax_amount=taxable * self.ISR_RATE,
            exempt=is_primary_residence and gain <= exemption,
        )

    def standard_deduction(self, year, filing_status):
        return 0.0

    def loan_cap(self, year, filing_status):
        return self.config.tax_rules.max_deductible_interest or math.inf


# ------------------------- Everything else -------------------------


class FallbackTaxStrategy:
    """Best effort for unmodelled countries: no deductions, main home exempt, flat CGT."""

    def __init__(self, config: CountryConfig):
        self.config = config

    def deduction_benefits(
        self,
        year,
        loan_balance,
        interest_paid,
        property_tax_paid,
        filing_status,
        marginal_rate,
        other_deductions,
        years_owned,
        tax_cuts_expire=True,
    ):
        return NO_DEDUCTION

    def capital_gains_tax(
        self, purchase_price, sale_price, years_owned, filing_status, is_primary_residence
    ):
        if is_primary_residence:
            return _exempt()
        taxable = max(0.0, sale_price - purchase_price)
        rate = self.config.tax_rules.capital_gains_tax_rate
        return CapitalGainsTax(taxable_gain=taxable, tax_amount=taxable * rate, exempt=False)

    def standard_deduction(self, year, filing_status):
        return float(self.config.standard_deduction(_is_joint(filing_status)))

    def loan_cap(self, year, filing_status):
        return math.inf


_STRATEGIES: Dict[CountryCode, Type] = {
    CountryCode.US: USTaxStrategy,
    CountryCode.GB: UKTaxStrategy,
    CountryCode.DE: GermanyTaxStrategy,
    CountryCode.FR: FranceTaxStrategy,
    CountryCode.CA: CanadaTaxStrategy,
    CountryCode.ES: SpainTaxStrategy,
    CountryCode.IT: ItalyTaxStrategy,
    CountryCode.MX: MexicoTaxStrategy,
}


def get_tax_strategy(
    country_code: Union[str, CountryCode, None], will_reinvest: bool = True
) -> TaxStrategy:
    """Strategy for `country_code`; unknown codes get FallbackTaxStrategy instead of an error."""
    code = parse_country_code(country_code)
    if code is None:
        logger.info("No tax strategy for country %r; using fallback", country_code)
        return FallbackTaxStrategy(GENERIC_CONFIG)
    if code == CountryCode.ES:
        return SpainTaxStrategy(will_reinvest=will_reinvest)
    return _STRATEGIES[code]()
