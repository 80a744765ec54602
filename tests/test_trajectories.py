"""Tests for the DataFrame views."""

import pytest

from analytics.simulation import simulate_buying, simulate_renting
from analytics.trajectories import (
    cost_components_dataframe,
    equity_vs_portfolio_dataframe,
    equivalent_monthly_cost_from_fv,
    horizon_profile_dataframe,
    yearly_comparison_dataframe,
)


class TestYearlyComparison:
    def test_columns_and_length(self, us_values):
        df = yearly_comparison_dataframe(
            simulate_buying(us_values, "US"), simulate_renting(us_values, "US")
        )
        assert list(df.columns) == ["Year", "Buying", "Renting", "Difference", "Cheaper"]
        assert len(df) == us_values.years_to_stay
        assert df["Year"].tolist() == list(range(1, 11))

    def test_difference_sign_matches_label(self, us_values):
        df = yearly_comparison_dataframe(
            simulate_buying(us_values, "US"), simulate_renting(us_values, "US")
        )
        assert ((df["Difference"] >= 0) == (df["Cheaper"] == "buy")).all()


class TestHorizonProfile:
    def test_rows_match_individual_simulations(self, us_values):
        df = horizon_profile_dataframe("US", us_values, max_years=5)
        assert df["Horizon (yrs)"].tolist() == [1, 2, 3, 4, 5]

        three = type(us_values)(**{**us_values.__dict__, "years_to_stay": 3})
        row = df.iloc[2]
        assert row["Buying Total"] == pytest.approx(simulate_buying(three, "US").total_cost)
        assert row["Renting Total"] == pytest.approx(simulate_renting(three, "US").total_cost)
        assert row["Difference"] == pytest.approx(row["Renting Total"] - row["Buying Total"])

    def test_equivalent_monthly_cost(self):
        assert equivalent_monthly_cost_from_fv(1_200, 12, 0.0) == pytest.approx(100)
        assert equivalent_monthly_cost_from_fv(1_000, 0, 0.05) == 0.0
        assert equivalent_monthly_cost_from_fv(1_200, 12, 0.05) < 100


class TestEquityVsPortfolio:
    def test_starts_from_the_down_payment(self, us_values):
        df = equity_vs_portfolio_dataframe("US", us_values)
        assert len(df) == us_values.years_to_stay + 1
        assert df["Home_Equity"].iloc[0] == pytest.approx(100_000)
        # renter keeps the down payment and the 4% buying costs
        assert df["Renter_Portfolio"].iloc[0] == pytest.approx(120_000)

    def test_equity_grows(self, us_values):
        df = equity_vs_portfolio_dataframe("US", us_values)
        assert df["Home_Equity"].is_monotonic_increasing
        assert df["Renter_Portfolio"].is_monotonic_increasing


class TestCostComponents:
    def test_buying_components(self, us_values):
        result = simulate_buying(us_values, "US")
        df = cost_components_dataframe(result)
        amounts = dict(zip(df["Category"], df["Amount"]))
        assert amounts["Down payment"] == pytest.approx(100_000)
        assert amounts["Tax savings"] <= 0
        assert amounts["Opportunity cost"] == pytest.approx(result.opportunity_cost)

    def test_renting_components(self, us_values):
        df = cost_components_dataframe(simulate_renting(us_values, "US"))
        assert "Rent" in df["Category"].tolist()
        assert "Interest" not in df["Category"].tolist()
