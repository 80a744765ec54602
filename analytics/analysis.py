# Import required modules
import logging
from dataclasses import dataclass, fields
from typing import List, Optional, Sequence, Union

from models import CalculatorValues, PriceOutcome
from finance.country_rules import CountryCode
from analytics.calculators import create_buying_calculator, create_renting_calculator

logger = logging.getLogger(__name__)

_FIELD_NAMES = {f.name for f in fields(CalculatorValues)}


def with_value(values: CalculatorValues, parameter: str, value: float) -> CalculatorValues:
    """Copy of `values` with one field replaced; integer fields are rounded."""
    if parameter not in _FIELD_NAMES:
        raise ValueError(f"Unknown parameter: {parameter!r}")
    current = getattr(values, parameter)
    if isinstance(current, int) and not isinstance(current, bool):
        value = int(round(value))
    return CalculatorValues(**{**values.__dict__, parameter: value})


@dataclass(frozen=True)
class IntersectionResult:
    index: int
    value: float
    difference: float  # rent total - buy total at `value`
    evaluations: int


def find_intersection(
    values: CalculatorValues,
    parameter: str,
    min_value: float,
    max_value: float,
    segments: int,
    buying_calculator,
    renting_calculator,
) -> IntersectionResult:
    """
    Bisection on f(i) = rent_total(v_i) - buy_total(v_i), v_i = min + i * step,
    over i in [0, segments - 1]. Returns the evaluated index with the smallest |f|.

    Expects opposite signs at the two ends. When they agree the closer endpoint
    is returned and a warning logged; no exception is raised.
    """
    if segments < 1:
        raise ValueError("segments must be >= 1")
    if parameter not in _FIELD_NAMES:
        raise ValueError(f"Unknown parameter: {parameter!r}")

    step = (max_value - min_value) / (segments - 1) if segments > 1 else 0.0
    evaluations = 0

    def f(idx: int) -> float:
        nonlocal evaluations
        evaluations += 1
        tmp = with_value(values, parameter, min_value + idx * step)
        return renting_calculator.total_cost(tmp) - buying_calculator.total_cost(tmp)

    def result(idx: int, diff: float) -> IntersectionResult:
        return IntersectionResult(
            index=idx,
            value=min_value + idx * step,
            difference=diff,
            evaluations=evaluations,
        )

    lo, hi = 0, segments - 1
    f_lo = f(lo)
    if hi == lo:
        return result(lo, f_lo)
    f_hi = f(hi)

    if (f_lo < 0) == (f_hi < 0):
        logger.warning(
            "No sign change for %s over [%s, %s]; returning the closest endpoint",
            parameter,
            min_value,
            max_value,
        )
        if abs(f_hi) < abs(f_lo):
            return result(hi, f_hi)
        return result(lo, f_lo)

    best_idx, best = (lo, f_lo) if abs(f_lo) <= abs(f_hi) else (hi, f_hi)
    sign_lo = f_lo < 0
    while hi - lo > 1:
        mid = (lo + hi) // 2
        fm = f(mid)
        if abs(fm) < abs(best):
            best_idx, best = mid, fm
        if (fm < 0) == sign_lo:
            lo = mid  # root is to the right
        else:
            hi = mid

    return result(best_idx, best)


def price_outcome(
    values: CalculatorValues,
    parameter: str,
    min_value: float,
    max_value: float,
    buying_calculator,
    renting_calculator,
) -> PriceOutcome:
    """Which option wins at each end of the range."""
    start = with_value(values, parameter, min_value)
    end = with_value(values, parameter, max_value)

    rent_better_at_start = renting_calculator.total_cost(start) < buying_calculator.total_cost(start)
    rent_better_at_end = renting_calculator.total_cost(end) < buying_calculator.total_cost(end)

    if rent_better_at_start and rent_better_at_end:
        return PriceOutcome.RENT
    if not rent_better_at_start and not rent_better_at_end:
        return PriceOutcome.BUY
    if rent_better_at_start:
        return PriceOutcome.START_RENT_END_BUY
    return PriceOutcome.START_BUY_END_RENT


def find_break_even_year(
    buy_yearly: Sequence[float], rent_yearly: Sequence[float]
) -> Optional[int]:
    """First year (1-based) in which buying's running total is at or below renting's."""
    for i, (buy, rent) in enumerate(zip(buy_yearly, rent_yearly), start=1):
        if buy <= rent:
            return i
    return None


def find_breakeven_value(
    country_code: Union[str, CountryCode, None],
    values: CalculatorValues,
    parameter: str,
    min_value: float,
    max_value: float,
    segments: int = 1000,
) -> Optional[IntersectionResult]:
    """Value of `parameter` at which the recommendation flips, or None if one option wins throughout."""
    buying = create_buying_calculator(country_code, values)
    renting = create_renting_calculator(country_code, values)

    outcome = price_outcome(values, parameter, min_value, max_value, buying, renting)
    if outcome in (PriceOutcome.RENT, PriceOutcome.BUY):
        return None
    return find_intersection(
        values, parameter, min_value, max_value, segments, buying, renting
    )


def breakeven_home_price_growth(
    country_code: Union[str, CountryCode, None],
    values: CalculatorValues,
    tol=1e-6,
    lo=-0.20,
    hi=0.20,
    iters=60,
):
    """Solve for the annual home price growth at which buying and renting cost the same."""
    buying = create_buying_calculator(country_code, values)
    renting = create_renting_calculator(country_code, values)

    def diff_at(g):
        tmp = with_value(values, "home_price_growth", g)
        return buying.total_cost(tmp) - renting.total_cost(tmp)

    a, b = lo, hi
    fa, fb = diff_at(a), diff_at(b)
    # Expand if needed
    k = 0
    while fa * fb > 0 and k < 8:
        a -= 0.05
        b += 0.05
        fa, fb = diff_at(a), diff_at(b)
        k += 1
    if fa * fb > 0:
        logger.warning("No break-even home price growth in [%.2f, %.2f]", a, b)
        return None

    for _ in range(iters):
        m = 0.5 * (a + b)
        fm = diff_at(m)
        if abs(fm) < tol:
            return m
        if fa * fm <= 0:
            b, fb = m, fm
        else:
            a, fa = m, fm
    return 0.5 * (a + b)


# --- Sensitivity ---


@dataclass(frozen=True)
class SensitivityResult:
    parameter: str
    key: str
    low_value: float
    high_value: float
    # Positive favours buying, negative favours renting
    low_impact: float
    high_impact: float


SENSITIVITY_PARAMETERS = (
    ("Mortgage Rate", "mortgage_rate", 0.01),
    ("Home Price Growth", "home_price_growth", 0.01),
    ("Investment Return", "investment_return", 0.01),
    ("Years to Stay", "years_to_stay", 2),
)


def _cost_gap(country_code, values: CalculatorValues) -> float:
    buy = create_buying_calculator(country_code, values).total_cost()
    rent = create_renting_calculator(country_code, values).total_cost()
    return buy - rent  # positive = renting wins


def compute_sensitivity(
    country_code: Union[str, CountryCode, None], values: CalculatorValues
) -> List[SensitivityResult]:
    """How far the buy-minus-rent gap moves when each key input shifts down or up by its delta."""
    base_gap = _cost_gap(country_code, values)

    results = []
    for label, key, delta in SENSITIVITY_PARAMETERS:
        base = getattr(values, key)
        low_value = base - delta
        high_value = base + delta
        if key == "years_to_stay":
            low_value = max(1, low_value)

        low = with_value(values, key, low_value)
        high = with_value(values, key, high_value)
        results.append(
            SensitivityResult(
                parameter=label,
                key=key,
                low_value=getattr(low, key),
                high_value=getattr(high, key),
                low_impact=base_gap - _cost_gap(country_code, low),
                high_impact=base_gap - _cost_gap(country_code, high),
            )
        )
    return results
