"""Tests for defaults and record construction."""

import pytest

from config import (
    BASE_DEFAULTS,
    DEFAULT_VALUES,
    apply_country_defaults,
    country_rule_defaults,
    values_from_mapping,
)
from analytics.simulation import simulate_buying
from finance.country_rules import COUNTRY_CONFIGS
from models import CalculatorValues, FilingStatus


class TestDefaults:
    def test_base_defaults_build_a_record(self):
        values = CalculatorValues(**BASE_DEFAULTS)
        assert values.home_price == 500_000
        assert values.down_payment == 100_000

    def test_market_values_for_every_country(self):
        assert {code.value for code in COUNTRY_CONFIGS} == set(DEFAULT_VALUES)


class TestApplyCountryDefaults:
    def test_germany(self):
        values = apply_country_defaults("DE")
        assert values.home_price == 400_000
        assert values.monthly_rent == 1_200
        assert values.mortgage_term_years == 30
        assert values.security_deposit_months == 3
        assert values.pmi_rate == 0.0
        assert values.buying_cost_fraction == 0.0

    def test_us_has_mortgage_insurance(self):
        values = apply_country_defaults("US")
        assert values.pmi_rate == 0.005
        assert values.marginal_tax_rate == 0.22

    def test_overrides_win(self):
        values = apply_country_defaults("GB", home_price=1_000_000, years_to_stay=4)
        assert values.home_price == 1_000_000
        assert values.years_to_stay == 4
        assert values.monthly_rent == 1_500

    def test_unknown_override(self):
        with pytest.raises(ValueError):
            apply_country_defaults("US", house_price=1)

    def test_unknown_country_uses_generic_rules(self):
        values = apply_country_defaults("JP")
        assert values.home_price == BASE_DEFAULTS["home_price"]
        assert values.mortgage_term_years == 25

    def test_rule_defaults_follow_table(self):
        defaults = country_rule_defaults("FR")
        assert defaults["selling_cost_fraction"] == 0.05
        assert defaults["mortgage_term_years"] == 20


class TestClosingCostsFromDefaults:
    def test_gb_pays_banded_stamp_duty(self):
        values = apply_country_defaults("GB", home_price=350_000)
        # 5% on the slice above 250,000 plus 0.2% registration
        assert simulate_buying(values, "GB").components["closing_cost"] == pytest.approx(5_700)

    def test_gb_first_time_buyer_relief(self):
        values = apply_country_defaults("GB", home_price=400_000, is_first_time_buyer=True)
        assert simulate_buying(values, "GB").components["closing_cost"] == pytest.approx(800)

    def test_france_new_build_rate(self):
        existing = simulate_buying(apply_country_defaults("FR"), "FR")
        new_build = simulate_buying(apply_country_defaults("FR", is_new_build=True), "FR")
        assert existing.initial_cost - new_build.initial_cost == pytest.approx(0.05 * 350_000)

    def test_from_mapping_uses_country_rules(self):
        values = values_from_mapping({"home_price": 350_000}, "GB")
        assert simulate_buying(values, "GB").components["closing_cost"] == pytest.approx(5_700)

    def test_explicit_fraction_still_wins(self):
        values = apply_country_defaults("GB", home_price=350_000, buying_cost_fraction=0.03)
        assert simulate_buying(values, "GB").components["closing_cost"] == pytest.approx(10_500)


class TestValuesFromMapping:
    def test_drops_unknown_and_mistyped(self):
        values = values_from_mapping(
            {
                "home_price": "a lot",
                "years_to_stay": 12.0,
                "tax_cuts_expire": "yes",
                "filing_status": "single",
                "favourite_colour": "blue",
                "monthly_rent": 2_500,
            }
        )
        assert values.home_price == BASE_DEFAULTS["home_price"]
        assert values.years_to_stay == 12
        assert isinstance(values.years_to_stay, int)
        assert values.tax_cuts_expire is True
        assert values.filing_status == FilingStatus.SINGLE
        assert values.monthly_rent == 2_500.0

    def test_bad_filing_status(self):
        assert values_from_mapping({"filing_status": "married"}).filing_status == FilingStatus.JOINT

    def test_fractional_integer_rejected(self):
        assert values_from_mapping({"mortgage_term_years": 22.5}).mortgage_term_years == 30

    def test_with_country(self):
        values = values_from_mapping({"years_to_stay": 5}, "IT")
        assert values.home_price == 250_000
        assert values.years_to_stay == 5
