"""Bisection search for the periodic rate that discounts cash flows to a value.

The solver answers: which periodic rate ``r`` makes

    present_value = sum(cash_flows[i] / (1 + r) ** (i + 1))

true? The discounted sum decreases as the rate grows, so the residual
``present_value - discounted_sum`` increases with the rate and bisection can
keep whichever half of the bracket still contains the sign change.
"""

from __future__ import annotations

from typing import Sequence

from .exceptions import PrecisionWarning
from .logging import get_logger

logger = get_logger(__name__)

LOWER_BOUND = 1e-5
UPPER_BOUND = 0.1
TOLERANCE = 1e-8
MAX_ITERATIONS = 200


def npv_residual(cash_flows: Sequence[float], present_value: float, rate: float) -> float:
    """Return ``present_value`` minus the cash flows discounted at ``rate``."""
    discounted = 0.0
    for index, cash_flow in enumerate(cash_flows):
        discounted += cash_flow / (1 + rate) ** (index + 1)
    return present_value - discounted


def solve_rate(
    cash_flows: Sequence[float],
    present_value: float,
    low: float = LOWER_BOUND,
    high: float = UPPER_BOUND,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
) -> float:
    """Return the periodic rate equating the cash flows with ``present_value``.

    The search runs over ``[low, high]``. If the residual does not fall
    within ``tolerance`` after ``max_iterations`` halvings, the midpoint of
    the final bracket is returned and a ``PrecisionWarning`` is logged.
    """
    for _ in range(max_iterations):
        mid = (low + high) / 2
        residual = npv_residual(cash_flows, present_value, mid)
        if abs(residual) < tolerance:
            return mid
        if residual > 0:
            # Flows discount to less than the present value: rate too high
            high = mid
        else:
            low = mid

    best = (low + high) / 2
    message = (
        f"Rate search did not converge within {max_iterations} iterations "
        f"(residual {npv_residual(cash_flows, present_value, best):.3e}); using {best:.10f}"
    )
    logger.warning("%s: %s", PrecisionWarning.__name__, message)
    return best
