import math
from typing import List, Tuple

Bands = List[Tuple[float, float]]  # (upper bound, marginal rate)

SDLT_STANDARD_BANDS: Bands = [
    (250_000, 0.00),
    (925_000, 0.05),
    (1_500_000, 0.10),
    (math.inf, 0.12),
]

SDLT_FIRST_TIME_BUYER_BANDS: Bands = [
    (425_000, 0.00),
    (625_000, 0.05),
]
SDLT_FIRST_TIME_BUYER_CAP = 625_000

SPAIN_SAVINGS_BANDS: Bands = [
    (6_000, 0.19),
    (50_000, 0.21),
    (200_000, 0.23),
    (math.inf, 0.26),
]


def banded_tax(amount: float, bands: Bands) -> float:
    """Marginal-rate tax on `amount` over ascending (upper bound, rate) bands."""
    a = max(0.0, float(amount))
    tax = 0.0
    prev = 0.0
    for cap, rate in bands:
        portion = max(0.0, min(a, cap) - prev)
        if portion <= 0:
            break
        tax += portion * rate
        prev = cap
    return tax


def stamp_duty_land_tax(price_gbp: float, first_time_buyer: bool = False) -> float:
    """
    SDLT for a main residence in England & NI.

    Standard bands:
      - 0%    up to £250,000
      - 5%    £250,001–£925,000
      - 10%   £925,001–£1,500,000
      - 12%   above £1,500,000

    First-time buyer relief, only when the price is at most £625,000:
      - 0%    up to £425,000
      - 5%    £425,001–£625,000
    Above £625,000 a first-time buyer pays the standard bands on the whole price.

    Caveats:
      - Does NOT model the additional-dwelling or non-resident surcharges.
      - Does NOT handle linked transactions or Scottish LBTT / Welsh LTT.

    Returns: total SDLT rounded to the nearest pound.
    """
    p = max(0.0, float(price_gbp))
    if first_time_buyer and p <= SDLT_FIRST_TIME_BUYER_CAP:
        tax = banded_tax(p, SDLT_FIRST_TIME_BUYER_BANDS)
    else:
        tax = banded_tax(p, SDLT_STANDARD_BANDS)
    return float(round(tax))


def spain_progressive_gains_tax(gain: float) -> float:
    """Base del ahorro schedule applied to a property gain (19% → 26%)."""
    return banded_tax(gain, SPAIN_SAVINGS_BANDS)


def france_income_tax_taper(years_owned: int) -> float:
    """
    Abattement pour durée de détention, income-tax part (19%):
      years 1-5   : 0%
      years 6-21  : 6% per year beyond the 5th (96% after 21 years)
      year 22+    : fully exempt
    """
    if years_owned >= 22:
        return 1.0
    if years_owned <= 5:
        return 0.0
    return min((years_owned - 5) * 0.06, 1.0)


def france_social_charges_taper(years_owned: int) -> float:
    """
    Abattement, prélèvements sociaux part (17.2%):
      years 1-5   : 0%
      years 6-21  : 1.65% per year
      year 22     : +1.60%
      years 23-30 : +9% per year
      year 30+    : fully exempt
    """
    if years_owned >= 30:
        return 1.0
    if years_owned <= 5:
        return 0.0

    taper = min(years_owned - 5, 16) * 0.0165
    if years_owned >= 22:
        taper += 0.016
    if years_owned >= 23:
        taper += min(years_owned - 22, 8) * 0.09
    return min(taper, 1.0)


def canada_taxable_capital_gain(
    gain: float,
    inclusion_rate: float = 0.50,
    higher_inclusion_rate: float = 0.6667,
    threshold: float = 250_000,
) -> float:
    """Portion of a capital gain added to income under the tiered inclusion rate."""
    g = max(0.0, float(gain))
    if g <= threshold:
        return g * inclusion_rate
    return threshold * inclusion_rate + (g - threshold) * higher_inclusion_rate
