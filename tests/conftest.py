import pytest

from models import CalculatorValues


@pytest.fixture
def make_values():
    """Build a record pinned to 2024 so US tax-law expiry does not depend on today's date."""

    def _make(**overrides):
        overrides.setdefault("start_year", 2024)
        return CalculatorValues(**overrides)

    return _make


@pytest.fixture
def us_values(make_values):
    return make_values()
