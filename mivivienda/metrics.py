"""Loan metrics: the entry point of the engine.

``compute`` turns ``LoanInputs`` into a ``CalculationResult``: it resolves
the down payment and the BBP subsidy, builds the schedule and derives the
regulatory rates from it:

* TCEA, the all-in effective annual cost, solved over each period's payment
  without the fixed fees and annualized.
* TREA, reported as 90 % of the TCEA.
* VAN, the loan amount minus the discounted payments at the COK rate. Life
  insurance counts as an outflow only in the first four periods.
* TIR, the monthly internal rate of return, reported as a monthly
  percentage (not annualized).

TCEA and TIR are solved against the financed amount, i.e. without the
initial costs that the schedule itself finances.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .data_models import CalculationResult, LoanInputs, ScheduleRow
from .engine import generate_schedule
from .exceptions import InvalidLoanInputError
from .logging import get_logger
from .rates import annual_to_monthly, monthly_to_annual, to_monthly_rate
from .solver import solve_rate
from .subsidy import BuyRateProvider, SubsidyCalculator

logger = get_logger(__name__)

TREA_RATIO = 0.9
# Periods whose life insurance is part of the VAN outflow.
VAN_LIFE_INSURANCE_PERIODS = 4

COMPARISON_METRICS = (
    "monthly_payment",
    "total_interest",
    "loan_amount",
    "subsidy_value",
    "tcea",
    "trea",
    "van",
    "tir",
    "total_periodic_costs",
)
# Metrics where the lowest value is the best offer.
COST_METRICS = ("monthly_payment", "total_interest", "tcea", "total_periodic_costs")

ResultLike = Union[CalculationResult, Mapping[str, Any]]


def effective_annual_cost(schedule: Sequence[ScheduleRow], financed_amount: float) -> float:
    """Return the TCEA in percent."""
    cash_flows = [row.total_payment - row.fixed_fees for row in schedule]
    monthly = solve_rate(cash_flows, financed_amount)
    return monthly_to_annual(monthly) * 100


def effective_annual_return(tcea: float) -> float:
    """Return the TREA in percent, a fixed fraction of the TCEA."""
    return tcea * TREA_RATIO


def net_present_value(
    schedule: Sequence[ScheduleRow], discount_rate_monthly: float, loan_amount: float
) -> float:
    """Return the VAN of the loan from the borrower's side.

    The loan amount is received at t=0. Payments from period 1 to
    ``VAN_LIFE_INSURANCE_PERIODS`` count in full; later ones exclude the life
    insurance.
    """
    npv = loan_amount
    for index, row in enumerate(schedule):
        if index < VAN_LIFE_INSURANCE_PERIODS:
            outflow = row.total_payment
        else:
            outflow = row.total_payment - row.life_insurance
        npv -= outflow / (1 + discount_rate_monthly) ** (index + 1)
    return npv


def internal_rate_of_return(
    schedule: Sequence[ScheduleRow],
    financed_amount: float,
    include_fixed_fees: bool = False,
) -> float:
    """Return the TIR as a monthly percentage."""
    if include_fixed_fees:
        cash_flows = [row.total_payment for row in schedule]
    else:
        cash_flows = [row.total_payment - row.fixed_fees for row in schedule]
    return solve_rate(cash_flows, financed_amount) * 100


def headline_payment(schedule: Sequence[ScheduleRow]) -> float:
    """Return the base instalment of the first amortizing period, without periodic costs."""
    for row in schedule:
        if row.principal_paid > 0:
            return row.total_payment - row.total_periodic_cost
    return 0.0


def compute(inputs: LoanInputs, rate_provider: Optional[BuyRateProvider] = None) -> CalculationResult:
    """Compute the schedule and every metric for ``inputs``.

    Parameters
    ----------
    inputs: LoanInputs
        The loan terms and applicant profile.
    rate_provider: optional
        Object with a ``get_buy_rate()`` method, consulted only when the
        simulation is in USD.

    Raises
    ------
    InvalidLoanInputError
        If the inputs are malformed.
    MissingParameterError, UnsupportedRateTypeError
        If the rate cannot be converted.
    RateUnavailableError
        If a USD simulation cannot obtain an exchange rate.
    """
    inputs.validate()
    monthly_rate = to_monthly_rate(inputs.rate, inputs.rate_type, inputs.capitalization_period)

    down_payment_amount = inputs.down_payment_amount
    financed_before_subsidy = inputs.property_price - down_payment_amount
    subsidy = SubsidyCalculator(rate_provider).compute(
        inputs.property_price, inputs.currency, inputs.applicant_profile
    )
    financed_amount = financed_before_subsidy - subsidy
    initial_costs_total = inputs.initial_costs.total
    loan_amount = financed_amount + initial_costs_total
    if loan_amount <= 0:
        raise InvalidLoanInputError(
            f"Nothing left to finance: loan amount is {loan_amount:.2f} after down payment and subsidy"
        )

    schedule = generate_schedule(
        loan_amount,
        monthly_rate,
        inputs.term_months,
        inputs.grace_period_type,
        inputs.grace_period_months,
        inputs.periodic_charges,
        inputs.property_price,
        inputs.start_date,
    )

    tcea = effective_annual_cost(schedule, financed_amount)
    van = net_present_value(schedule, annual_to_monthly(inputs.discount_rate), loan_amount)
    tir = internal_rate_of_return(schedule, financed_amount)

    result = CalculationResult(
        monthly_payment=headline_payment(schedule),
        total_interest=sum(row.interest for row in schedule),
        financed_amount=financed_amount,
        loan_amount=loan_amount,
        subsidy_value=subsidy,
        down_payment_amount=down_payment_amount,
        initial_costs_total=initial_costs_total,
        monthly_rate=monthly_rate,
        tcea=tcea,
        trea=effective_annual_return(tcea),
        van=van,
        tir=tir,
        insurance_life=sum(row.life_insurance for row in schedule),
        insurance_risk=sum(row.property_insurance for row in schedule),
        periodic_fees=sum(row.fixed_fees for row in schedule),
        total_periodic_costs=sum(row.total_periodic_cost for row in schedule),
        total_amortization=sum(row.principal_paid for row in schedule),
        schedule=tuple(schedule),
    )
    logger.debug(
        "Computed %d periods: loan=%.2f payment=%.2f tcea=%.4f%% van=%.2f",
        len(schedule),
        loan_amount,
        result.monthly_payment,
        tcea,
        van,
    )
    return result


def _metric(result: ResultLike, name: str) -> float:
    if isinstance(result, Mapping):
        return result[name]
    return getattr(result, name)


def compare_results(base: ResultLike, other: ResultLike) -> Dict[str, Dict[str, float]]:
    """Return ``{metric: {"base", "other", "difference"}}`` for the headline metrics.

    ``difference`` is ``other - base``; a negative difference on a cost
    metric means the second scenario is cheaper.
    """
    comparison: Dict[str, Dict[str, float]] = {}
    for metric in COMPARISON_METRICS:
        base_value = _metric(base, metric)
        other_value = _metric(other, metric)
        comparison[metric] = {
            "base": base_value,
            "other": other_value,
            "difference": other_value - base_value,
        }
    return comparison


def compare_many(results: Sequence[ResultLike]) -> Dict[str, Any]:
    """Line up two to four results side by side.

    Returns ``{"metrics": {metric: [values...]}, "best": {metric: index}}``
    where ``best`` holds the index of the lowest value of each cost metric.
    """
    if not 2 <= len(results) <= 4:
        raise InvalidLoanInputError("Between 2 and 4 simulations can be compared")
    metrics: Dict[str, List[float]] = {
        metric: [_metric(result, metric) for result in results] for metric in COMPARISON_METRICS
    }
    best = {
        metric: min(range(len(results)), key=lambda i, values=metrics[metric]: values[i])
        for metric in COST_METRICS
    }
    return {"metrics": metrics, "best": best}
