"""Tests for the per-country tax strategies."""

import math

import pytest

from finance.tax_strategies import (
    CanadaTaxStrategy,
    FallbackTaxStrategy,
    FranceTaxStrategy,
    GermanyTaxStrategy,
    ItalyTaxStrategy,
    MexicoTaxStrategy,
    SpainTaxStrategy,
    UKTaxStrategy,
    USTaxStrategy,
    get_tax_strategy,
)
from models import FilingStatus

JOINT = FilingStatus.JOINT
SINGLE = FilingStatus.SINGLE


def deduction(strategy, year=2024, balance=400_000, interest=28_000, property_tax=8_000,
              filing=JOINT, marginal=0.22, other=0.0, years_owned=1, **kwargs):
    return strategy.deduction_benefits(
        year, balance, interest, property_tax, filing, marginal, other, years_owned, **kwargs
    )


class TestFactory:
    @pytest.mark.parametrize(
        "code, cls",
        [
            ("US", USTaxStrategy),
            ("GB", UKTaxStrategy),
            ("UK", UKTaxStrategy),
            ("DE", GermanyTaxStrategy),
            ("FR", FranceTaxStrategy),
            ("CA", CanadaTaxStrategy),
            ("ES", SpainTaxStrategy),
            ("IT", ItalyTaxStrategy),
            ("MX", MexicoTaxStrategy),
            ("us", USTaxStrategy),
        ],
    )
    def test_known_codes(self, code, cls):
        assert isinstance(get_tax_strategy(code), cls)

    def test_unknown_code_falls_back(self, caplog):
        with caplog.at_level("INFO"):
            strategy = get_tax_strategy("JP")
        assert isinstance(strategy, FallbackTaxStrategy)
        assert "JP" in caplog.text

    def test_spain_reinvest_flag(self):
        assert get_tax_strategy("ES").will_reinvest is True
        assert get_tax_strategy("ES", will_reinvest=False).will_reinvest is False

    @pytest.mark.parametrize("code", ["US", "GB", "DE", "FR", "CA", "ES", "IT", "MX", "ZZ"])
    def test_deduction_benefits_rejects_wrong_arity(self, code):
        strategy = get_tax_strategy(code)
        with pytest.raises(TypeError):
            strategy.deduction_benefits(2024, 400_000, 28_000)
        with pytest.raises(TypeError):
            strategy.deduction_benefits(2024, 400_000, 28_000, 8_000, JOINT, 0.22, 0.0, 1, True, "extra")

    def test_fallback_logs_once(self, caplog):
        with caplog.at_level("INFO"):
            get_tax_strategy("JP")
        assert len(caplog.records) == 1


class TestUnitedStates:
    def test_capital_gains_with_joint_exclusion(self):
        cgt = USTaxStrategy().capital_gains_tax(400_000, 1_000_000, 5, JOINT, True)
        assert cgt.taxable_gain == pytest.approx(100_000)
        assert cgt.tax_amount == pytest.approx(15_000)
        assert cgt.exempt is True

    def test_no_exclusion_under_two_years(self):
        cgt = USTaxStrategy().capital_gains_tax(400_000, 500_000, 1, SINGLE, True)
        assert cgt.tax_amount == pytest.approx(15_000)
        assert cgt.exempt is False

    def test_itemizing_over_standard_deduction(self):
        benefit = deduction(USTaxStrategy())
        # 28,000 + 8,000 itemized vs 29,200 standard
        assert benefit.tax_savings == pytest.approx(6_800 * 0.22)

    def test_no_benefit_below_standard_deduction(self):
        benefit = deduction(USTaxStrategy(), interest=15_000, property_tax=5_000)
        assert benefit.tax_savings == 0.0

    def test_salt_cap(self):
        benefit = deduction(USTaxStrategy(), property_tax=25_000)
        assert benefit.deductible_property_tax == 10_000

    def test_loan_cap_prorates_interest(self):
        benefit = deduction(USTaxStrategy(), balance=1_500_000, interest=100_000)
        assert benefit.deductible_interest == pytest.approx(50_000)

    def test_provisions_expire_after_2025(self):
        us = USTaxStrategy()
        assert us.standard_deduction(2026, JOINT) == 16_253
        assert us.loan_cap(2026, SINGLE) == 500_000
        benefit = deduction(us, year=2026, property_tax=25_000)
        assert benefit.deductible_property_tax == 25_000

    def test_provisions_extended(self):
        us = USTaxStrategy()
        assert us.standard_deduction(2030, JOINT, tax_cuts_expire=False) == 29_200
        assert us.loan_cap(2030, JOINT, tax_cuts_expire=False) == 750_000


class TestUnitedKingdom:
    def test_main_home_exempt(self):
        cgt = UKTaxStrategy().capital_gains_tax(300_000, 500_000, 3, SINGLE, True)
        assert cgt.exempt and cgt.tax_amount == 0.0

    def test_second_home_after_annual_exemption(self):
        cgt = UKTaxStrategy().capital_gains_tax(300_000, 400_000, 3, SINGLE, False)
        assert cgt.taxable_gain == pytest.approx(97_000)
        assert cgt.tax_amount == pytest.approx(97_000 * 0.24)

    def test_no_deductions(self):
        assert deduction(UKTaxStrategy()).tax_savings == 0.0
        assert UKTaxStrategy().standard_deduction(2024, JOINT) == 12_570
        assert UKTaxStrategy().loan_cap(2024, JOINT) == math.inf


class TestGermany:
    def test_ten_year_boundary_is_inclusive(self):
        de = GermanyTaxStrategy()
        assert de.capital_gains_tax(300_000, 400_000, 10, SINGLE, False).exempt is True
        taxed = de.capital_gains_tax(300_000, 400_000, 9, SINGLE, False)
        assert taxed.exempt is False
        assert taxed.tax_amount == pytest.approx(100_000 * 0.25 * 1.055)

    def test_owner_occupied_exempt(self):
        assert GermanyTaxStrategy().capital_gains_tax(300_000, 400_000, 2, SINGLE, True).exempt

    def test_loss_is_exempt(self):
        cgt = GermanyTaxStrategy().capital_gains_tax(300_000, 250_000, 2, SINGLE, False)
        assert cgt.exempt and cgt.tax_amount == 0.0


class TestFrance:
    def test_tapered_gain(self):
        cgt = FranceTaxStrategy().capital_gains_tax(200_000, 300_000, 10, SINGLE, False)
        # income-tax abatement 30%, social-charges abatement 8.25%
        assert cgt.taxable_gain == pytest.approx(70_000)
        assert cgt.tax_amount == pytest.approx(70_000 * 0.19 + 91_750 * 0.172)

    def test_income_tax_part_gone_after_22_years(self):
        cgt = FranceTaxStrategy().capital_gains_tax(200_000, 300_000, 22, SINGLE, False)
        assert cgt.taxable_gain == 0.0
        assert cgt.tax_amount == pytest.approx(72_000 * 0.172)

    def test_loss_not_exempt_but_untaxed(self):
        cgt = FranceTaxStrategy().capital_gains_tax(300_000, 200_000, 3, SINGLE, False)
        assert cgt.tax_amount == 0.0 and cgt.exempt is False


class TestCanada:
    def test_inclusion_rate(self):
        cgt = CanadaTaxStrategy().capital_gains_tax(500_000, 600_000, 4, SINGLE, False)
        assert cgt.taxable_gain == pytest.approx(50_000)
        assert cgt.tax_amount == pytest.approx(12_500)

    def test_principal_residence_exempt(self):
        assert CanadaTaxStrategy().capital_gains_tax(500_000, 900_000, 4, SINGLE, True).exempt


class TestSpain:
    def test_reinvested_main_home_exempt(self):
        assert SpainTaxStrategy().capital_gains_tax(200_000, 300_000, 4, SINGLE, True).exempt

    def test_progressive_plus_plusvalia(self):
        cgt = SpainTaxStrategy(will_reinvest=False).capital_gains_tax(
            200_000, 300_000, 4, SINGLE, True
        )
        assert cgt.tax_amount == pytest.approx(21_880 + 1_000)

    def test_standard_deduction(self):
        assert SpainTaxStrategy().standard_deduction(2024, JOINT) == 5_550


class TestItaly:
    def test_interest_detrazione_capped(self):
        benefit = deduction(ItalyTaxStrategy(), interest=10_000)
        assert benefit.deductible_interest == 4_000
        assert benefit.tax_savings == pytest.approx(760)

    def test_five_year_rule(self):
        it = ItalyTaxStrategy()
        assert it.capital_gains_tax(200_000, 250_000, 4, SINGLE, True).tax_amount == pytest.approx(13_000)
        qualified = it.capital_gains_tax(200_000, 250_000, 5, SINGLE, True)
        assert qualified.exempt and qualified.tax_amount == 0.0

    def test_loan_cap(self):
        assert ItalyTaxStrategy().loan_cap(2024, SINGLE) == pytest.approx(80_000)


class TestMexico:
    def test_interest_at_marginal_rate(self):
        benefit = deduction(MexicoTaxStrategy(), interest=100_000, marginal=0.30)
        assert benefit.tax_savings == pytest.approx(30_000)

    def test_partial_exemption(self):
        cgt = MexicoTaxStrategy().capital_gains_tax(3_000_000, 4_000_000, 5, SINGLE, True)
        assert cgt.taxable_gain == pytest.approx(300_000)
        assert cgt.tax_amount == pytest.approx(105_000)
        assert cgt.exempt is False


class TestFallback:
    def test_flat_rate(self):
        strategy = get_tax_strategy("ZZ")
        cgt = strategy.capital_gains_tax(100_000, 200_000, 3, SINGLE, False)
        assert cgt.tax_amount == pytest.approx(20_000)
        assert strategy.capital_gains_tax(100_000, 200_000, 3, SINGLE, True).exempt
        assert deduction(strategy).tax_savings == 0.0
