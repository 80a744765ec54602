"""Tests for the country rule tables."""

import dataclasses

import pytest

from finance.country_rules import (
    COUNTRY_CONFIGS,
    GENERIC_CONFIG,
    GB_CONFIG,
    SUPPORTED_COUNTRIES,
    CountryCode,
    get_country_config,
    parse_country_code,
    validate_values,
)
from models import CalculatorValues


class TestLookup:
    def test_every_code_has_a_table(self):
        assert set(COUNTRY_CONFIGS) == set(CountryCode)
        assert len(SUPPORTED_COUNTRIES) == 8

    def test_uk_alias(self):
        assert parse_country_code("uk") == CountryCode.GB
        assert get_country_config("UK") is GB_CONFIG

    def test_unknown_country_uses_generic_table(self, caplog):
        with caplog.at_level("INFO", logger="finance.country_rules"):
            config = get_country_config("JP")
        assert config is GENERIC_CONFIG
        assert "JP" in caplog.text

    def test_empty_code(self):
        assert parse_country_code(None) is None
        assert get_country_config("") is GENERIC_CONFIG

    def test_tables_are_read_only(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            GB_CONFIG.tax_rules.capital_gains_tax_rate = 0.0


class TestClosingCostTables:
    def test_agent_commission_split(self):
        de = get_country_config("DE").closing_costs
        assert de.buyer_agent_share() == pytest.approx(0.0357 / 2)
        assert de.seller_agent_share() == pytest.approx(0.0357 / 2)

    def test_seller_pays(self):
        us = get_country_config("US").closing_costs
        assert us.buyer_agent_share() == 0.0
        assert us.seller_agent_share() == 0.05

    def test_gb_uses_banded_stamp_duty(self):
        costs = GB_CONFIG.closing_costs
        assert costs.transfer_tax_function(350_000, False) == 5_000


class TestValidateValues:
    def test_typical_values_pass(self):
        assert validate_values(CalculatorValues(), get_country_config("US")) == []

    def test_low_down_payment(self):
        values = CalculatorValues(down_payment_fraction=0.10, mortgage_term_years=30)
        warnings = validate_values(values, get_country_config("DE"))
        assert len(warnings) == 1
        assert "Down payment" in warnings[0]

    def test_uncommon_term(self):
        values = CalculatorValues(mortgage_term_years=40)
        warnings = validate_values(values, get_country_config("US"))
        assert any("40-year" in w for w in warnings)

    def test_deposit_above_legal_maximum(self):
        values = CalculatorValues(security_deposit_months=5)
        warnings = validate_values(values, get_country_config("DE"))
        assert any("legal maximum" in w for w in warnings)
