"""Bono del Buen Pagador (BBP) subsidy calculation.

The bonus depends on the price band of the property, the housing type and,
for low-income or vulnerable households, an additional integrated bonus. A
bounded personalization factor is then applied for the applicant's profile.

All amounts in the tables are in soles. For dollar simulations the band
boundaries and the bonus amounts are divided by the PEN-per-USD buy rate, so
the comparison and the result are both expressed in dollars.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from .data_models import ApplicantProfile
from .exceptions import RateUnavailableError
from .logging import get_logger

logger = get_logger(__name__)

# (band, lower bound, upper bound) in soles; bounds are inclusive.
PRICE_BANDS: Tuple[Tuple[str, float, float], ...] = (
    ("R1", 68800, 98100),
    ("R2", 98101, 146900),
    ("R3", 146901, 244600),
    ("R4", 244601, 362100),
    ("R5", 362101, 488800),
)

BONUS_TABLE = {
    "Traditional": {"R1": 27400, "R2": 22800, "R3": 20900, "R4": 7800, "R5": 0},
    "Sustainable": {"R1": 33700, "R2": 29100, "R3": 27200, "R4": 14100, "R5": 0},
}

INTEGRATED_BONUS_PEN = 3600
INCOME_CEILING = 4746
LOW_INCOME_THRESHOLD = 2500
DEFAULT_INCOME = 5000

PRIORITY_REGIONS = (
    "Amazonas",
    "Apurímac",
    "Ayacucho",
    "Huancavelica",
    "Huánuco",
    "Loreto",
    "Madre de Dios",
    "Pasco",
    "Puno",
    "Ucayali",
)

MAX_ADJUSTMENT_FACTOR = 1.15


class BuyRateProvider(Protocol):
    def get_buy_rate(self) -> float:
        ...


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: str


def check_eligibility(profile: ApplicantProfile) -> Eligibility:
    """Decide whether the household qualifies for the integrated bonus."""
    income = profile.monthly_income if profile.monthly_income is not None else DEFAULT_INCOME
    if income <= INCOME_CEILING:
        return Eligibility(True, f"Income S/{income:,.2f} <= S/{INCOME_CEILING:,}")
    conditions = []
    if profile.senior:
        conditions.append("senior")
    if profile.displaced:
        conditions.append("displaced person")
    if profile.returnee:
        conditions.append("returning migrant")
    if profile.disabled:
        conditions.append("person with disability")
    if conditions:
        return Eligibility(True, "Special condition: " + ", ".join(conditions))
    return Eligibility(
        False, f"Income S/{income:,.2f} > S/{INCOME_CEILING:,} and no special condition"
    )


def classify_band(property_price: float, buy_rate: float = 1.0) -> str:
    """Return the price band (``R1``..``R5``) for ``property_price``.

    ``buy_rate`` converts the soles boundaries into the price currency.
    Prices outside every band fall back to ``R5``.
    """
    for band, lower, upper in PRICE_BANDS:
        if lower / buy_rate <= property_price <= upper / buy_rate:
            logger.debug("Property price %.2f falls in band %s", property_price, band)
            return band
    logger.warning("Property price %.2f is outside every band; using R5", property_price)
    return "R5"


def base_bonus(band: str, housing_type: str) -> float:
    """Look up the bonus in soles for a band and housing type."""
    return float(BONUS_TABLE[housing_type][band])


def personalization_factor(profile: ApplicantProfile) -> float:
    """Return the profile multiplier, between 1.0 and ``MAX_ADJUSTMENT_FACTOR``."""
    factor = 1.0
    if profile.age is not None and profile.age >= 60:
        factor += 0.05

    region = (profile.region or "").strip().lower()
    priority_region = bool(region) and any(r.lower() == region for r in PRIORITY_REGIONS)
    if profile.zone == "rural" or priority_region:
        factor += 0.05

    income = profile.monthly_income or 0
    low_income = profile.declared_income_tier == "low" or 0 < income <= LOW_INCOME_THRESHOLD
    if profile.household_size >= 4 and (profile.minors >= 2 or low_income):
        factor += 0.05

    if sum(profile.special_conditions) >= 2:
        factor += 0.03

    return min(factor, MAX_ADJUSTMENT_FACTOR)


def compute_subsidy(
    property_price: float,
    currency: str,
    profile: ApplicantProfile,
    buy_rate: float = 1.0,
) -> float:
    """Return the BBP amount in the loan currency.

    Parameters
    ----------
    property_price: float
        Price of the property in ``currency``.
    currency: str
        ``PEN`` or ``USD``.
    profile: ApplicantProfile
        The applicant's household profile.
    buy_rate: float
        PEN-per-USD buy rate. Ignored for ``PEN``.
    """
    rate = buy_rate if currency == "USD" else 1.0

    # Eligibility is reported but only gates the integrated bonus below.
    eligibility = check_eligibility(profile)
    logger.info(
        "BBP eligibility: %s (%s)",
        "eligible" if eligibility.eligible else "not eligible",
        eligibility.reason,
    )

    band = classify_band(property_price, rate)
    bonus = base_bonus(band, profile.housing_type) / rate
    if eligibility.eligible and band != "R5":
        bonus += INTEGRATED_BONUS_PEN / rate

    factor = personalization_factor(profile)
    adjusted = max(0.0, bonus * factor)
    logger.debug(
        "BBP band=%s housing=%s base=%.2f factor=%.2f result=%.2f",
        band,
        profile.housing_type,
        bonus,
        factor,
        adjusted,
    )
    return adjusted


class SubsidyCalculator:
    """Compute the BBP using an injected exchange-rate provider.

    The provider is consulted only for dollar simulations. Without one, a
    dollar simulation raises ``RateUnavailableError`` rather than assuming a
    rate.
    """

    def __init__(self, rate_provider: Optional[BuyRateProvider] = None) -> None:
        self._rate_provider = rate_provider

    def resolve_buy_rate(self, currency: str) -> float:
        if currency != "USD":
            return 1.0
        if self._rate_provider is None:
            raise RateUnavailableError("No exchange rate provider configured for USD simulations")
        return self._rate_provider.get_buy_rate()

    def compute(self, property_price: float, currency: str, profile: ApplicantProfile) -> float:
        buy_rate = self.resolve_buy_rate(currency)
        return compute_subsidy(property_price, currency, profile, buy_rate)
