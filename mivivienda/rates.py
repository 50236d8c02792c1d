"""Conversion of quoted interest rates to an effective monthly rate.

Peruvian lenders quote rates as effective annual (TEA), semi-annual (TES),
quarterly (TET) or monthly (TEM) rates, or as a nominal annual rate (TNA)
with a capitalization frequency. The schedule works on monthly periods, so
every quote is reduced to an effective monthly rate here.
"""

from __future__ import annotations

from typing import Optional

from .exceptions import MissingParameterError, UnsupportedRateTypeError

# Months covered by one period of each effective rate type.
_EFFECTIVE_PERIOD_MONTHS = {
    "TEA": 12,
    "TES": 6,
    "TET": 3,
    "TEM": 1,
}

CAPITALIZATIONS_PER_YEAR = {
    "annual": 1,
    "quarterly": 4,
    "monthly": 12,
    "weekly": 52,
}


def to_monthly_rate(rate: float, rate_type: str, capitalization_period: Optional[str] = None) -> float:
    """Return the effective monthly rate (as a decimal) for a quoted rate.

    Parameters
    ----------
    rate: float
        The quoted rate in percent, e.g. ``9.5`` for 9.5 %.
    rate_type: str
        One of ``TEA``, ``TES``, ``TET``, ``TEM`` or ``TNA``.
    capitalization_period: str, optional
        Required for ``TNA``: ``annual``, ``quarterly``, ``monthly`` or
        ``weekly``.

    Raises
    ------
    MissingParameterError
        If ``rate_type`` is ``TNA`` and no capitalization period is given.
    UnsupportedRateTypeError
        If the rate type or capitalization period is unknown.
    """
    rate_decimal = rate / 100
    if rate_type in _EFFECTIVE_PERIOD_MONTHS:
        months = _EFFECTIVE_PERIOD_MONTHS[rate_type]
        if months == 1:
            return rate_decimal
        return (1 + rate_decimal) ** (1 / months) - 1
    if rate_type == "TNA":
        if not capitalization_period:
            raise MissingParameterError("TNA requires a capitalization period")
        try:
            capitalizations = CAPITALIZATIONS_PER_YEAR[capitalization_period]
        except KeyError:
            raise UnsupportedRateTypeError(
                f"Unsupported capitalization period: {capitalization_period}"
            ) from None
        periodic_rate = rate_decimal / capitalizations
        return (1 + periodic_rate) ** (capitalizations / 12) - 1
    raise UnsupportedRateTypeError(f"Unsupported rate type: {rate_type}")


def annual_to_monthly(annual_rate: float) -> float:
    """Convert an effective annual rate in percent to a monthly decimal rate."""
    return to_monthly_rate(annual_rate, "TEA")


def monthly_to_annual(monthly_rate: float) -> float:
    """Compound a monthly decimal rate over twelve months."""
    return (1 + monthly_rate) ** 12 - 1
