"""
Calculators bind a country and a parameter record to the pure simulations and
remember the last result. Create one per evaluation; instances are not meant
to be shared between callers.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from models import CalculatorValues, CostCalculationResult
from finance.country_rules import CountryCode, CountryConfig, get_country_config
from finance.tax_strategies import TaxStrategy, get_tax_strategy
from analytics.simulation import simulate_buying, simulate_renting

logger = logging.getLogger(__name__)

Simulation = Callable[[CalculatorValues, Union[str, CountryCode, None]], CostCalculationResult]


class _MemoizedCalculator:
    simulation: Simulation

    def __init__(self, country_code: Union[str, CountryCode, None], values: CalculatorValues):
        self.country_code = country_code
        self.values = values
        self._cached: Optional[CostCalculationResult] = None

    def calculate(self, values: Optional[CalculatorValues] = None) -> CostCalculationResult:
        """Result for `values` (or the bound record); recomputed only when the record changes."""
        if values is not None and values != self.values:
            self.values = values
            self._cached = None

        if self._cached is not None:
            logger.debug("%s: returning cached result", type(self).__name__)
            return self._cached

        self._cached = self.simulation(self.values, self.country_code)
        return self._cached

    def total_cost(self, values: Optional[CalculatorValues] = None) -> float:
        return self.calculate(values).total_cost


class BuyingCalculator(_MemoizedCalculator):
    simulation = staticmethod(simulate_buying)


class RentingCalculator(_MemoizedCalculator):
    simulation = staticmethod(simulate_renting)


def create_buying_calculator(
    country_code: Union[str, CountryCode, None], values: CalculatorValues
) -> BuyingCalculator:
    return BuyingCalculator(country_code, values)


def create_renting_calculator(
    country_code: Union[str, CountryCode, None], values: CalculatorValues
) -> RentingCalculator:
    return RentingCalculator(country_code, values)


@dataclass(frozen=True)
class CalculatorContext:
    country: CountryConfig
    tax_strategy: TaxStrategy
    buying: BuyingCalculator
    renting: RentingCalculator


def create_calculator_context(
    country_code: Union[str, CountryCode, None], values: CalculatorValues
) -> CalculatorContext:
    """Everything a caller needs for one country: rules, tax strategy and both calculators."""
    return CalculatorContext(
        country=get_country_config(country_code),
        tax_strategy=get_tax_strategy(country_code, will_reinvest=values.will_reinvest),
        buying=create_buying_calculator(country_code, values),
        renting=create_renting_calculator(country_code, values),
    )
