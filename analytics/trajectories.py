# Import required modules
from typing import Union

import numpy as np
import pandas as pd

from models import CalculatorValues, CostCalculationResult
from finance.country_rules import CountryCode, get_country_config
from finance.closing_costs import buying_closing_cost
from finance.tax_strategies import get_tax_strategy

# Import analytics functions
from analytics.simulation import after_tax_return, ownership_years
from analytics.calculators import create_buying_calculator, create_renting_calculator


def yearly_comparison_dataframe(
    buy: CostCalculationResult, rent: CostCalculationResult
) -> pd.DataFrame:
    """Running totals side by side; Difference > 0 means buying is cheaper so far."""
    buying = np.asarray(buy.yearly_breakdown, dtype=float)
    renting = np.asarray(rent.yearly_breakdown, dtype=float)
    n = min(len(buying), len(renting))
    buying, renting = buying[:n], renting[:n]

    return pd.DataFrame(
        {
            "Year": np.arange(1, n + 1),
            "Buying": buying,
            "Renting": renting,
            "Difference": renting - buying,
            "Cheaper": np.where(buying <= renting, "buy", "rent"),
        }
    )


def equivalent_monthly_cost_from_fv(
    total_fv_cost: float, months: int, opp_annual: float
):
    """Convert end-of-horizon FV cost into a level monthly 'equivalent' using the FV annuity factor."""
    r = opp_annual / 12.0
    if months == 0:
        return 0.0
    if r == 0:
        return total_fv_cost / months
    fv_annuity_factor = ((1 + r) ** months - 1) / r
    return total_fv_cost / fv_annuity_factor


def horizon_profile_dataframe(
    country_code: Union[str, CountryCode, None],
    values: CalculatorValues,
    max_years: int = 30,
) -> pd.DataFrame:
    """
    Build a DataFrame showing how total buying and renting costs evolve as the
    holding horizon varies from 1..max_years, using the current values for everything else.
    Unlike the running totals of a single simulation, every row includes the sale at that horizon.
    """
    horizons = []
    buy_totals = []
    rent_totals = []
    buy_monthly = []
    rent_monthly = []
    eff = after_tax_return(values)

    for h in range(1, max_years + 1):
        # Create a shallow copy of values with modified years_to_stay
        tmp = CalculatorValues(**{**values.__dict__, "years_to_stay": h})

        buy_total = create_buying_calculator(country_code, tmp).total_cost()
        rent_total = create_renting_calculator(country_code, tmp).total_cost()

        horizons.append(h)
        buy_totals.append(buy_total)
        rent_totals.append(rent_total)
        buy_monthly.append(equivalent_monthly_cost_from_fv(buy_total, h * 12, eff))
        rent_monthly.append(equivalent_monthly_cost_from_fv(rent_total, h * 12, eff))

    df = pd.DataFrame(
        {
            "Horizon (yrs)": horizons,
            "Buying Total": buy_totals,
            "Renting Total": rent_totals,
            "Buying Monthly Equivalent": buy_monthly,
            "Renting Monthly Equivalent": rent_monthly,
        }
    )
    df["Difference"] = df["Renting Total"] - df["Buying Total"]
    return df


def equity_vs_portfolio_dataframe(
    country_code: Union[str, CountryCode, None], values: CalculatorValues
) -> pd.DataFrame:
    """Return DataFrame with Years, Home_Equity and Renter_Portfolio.
    Home_Equity(t): home value(t) - loan balance(t), sale costs left out mid-hold.
    Renter_Portfolio(t): the renter invests what the buyer put in up front, then each
    year adds whatever owning cost more than renting, compounding at the after-tax return.
    """
    config = get_country_config(country_code)
    strategy = get_tax_strategy(country_code, will_reinvest=values.will_reinvest)
    eff = after_tax_return(values)

    portfolio = values.down_payment + buying_closing_cost(values, config)
    years = [0]
    equity = [values.home_price - values.loan_principal]
    wealth = [portfolio]

    for year in ownership_years(values, config, strategy):
        rent_cost = values.monthly_rent * 12 * (1 + values.rent_growth) ** (year.year - 1)
        surplus = max(0.0, year.cost - rent_cost)
        portfolio = portfolio * (1 + eff) + surplus

        years.append(year.year)
        equity.append(year.home_value - year.balance)
        wealth.append(portfolio)

    return pd.DataFrame(
        {
            "Years": years,
            "Home_Equity": equity,
            "Renter_Portfolio": wealth,
        }
    )


# --- Cost breakdown for stacked bar ---

_COMPONENT_LABELS = {
    "down_payment": "Down payment",
    "closing_cost": "Buying closing costs",
    "interest": "Interest",
    "principal": "Principal",
    "property_tax": "Property tax",
    "insurance": "Home insurance",
    "maintenance": "Maintenance",
    "mortgage_insurance": "Mortgage insurance",
    "tax_savings": "Tax savings",
    "selling_costs": "Selling costs",
    "capital_gains_tax": "Capital gains tax",
    "security_deposit": "Security deposit",
    "broker_fee": "Broker fee",
    "rent": "Rent",
    "renters_insurance": "Renter's insurance",
}


def cost_components_dataframe(result: CostCalculationResult) -> pd.DataFrame:
    """Return DataFrame with categories and amounts; tax savings show as a negative amount."""
    rows = []
    for key, label in _COMPONENT_LABELS.items():
        if key not in result.components:
            continue
        amount = result.components[key]
        if key == "tax_savings":
            amount = -amount
        rows.append({"Category": label, "Amount": amount})
    rows.append({"Category": "Opportunity cost", "Amount": result.opportunity_cost})
    return pd.DataFrame(rows, columns=["Category", "Amount"])
