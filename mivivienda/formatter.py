"""Output helpers for the mortgage simulator.

Plain text rendering of results, schedules and comparisons for the terminal.
Amounts are rounded to two decimals only here; the engine keeps full
precision.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

from .data_models import CalculationResult, ScheduleRow

CURRENCY_SYMBOLS = {"PEN": "S/", "USD": "$"}

_METRIC_LABELS = {
    "monthly_payment": "Monthly payment",
    "total_interest": "Total interest",
    "loan_amount": "Loan amount",
    "subsidy_value": "BBP subsidy",
    "tcea": "TCEA %",
    "trea": "TREA %",
    "van": "VAN",
    "tir": "TIR % (monthly)",
    "total_periodic_costs": "Periodic costs",
}


def print_summary(result: CalculationResult, currency: str = "PEN") -> None:
    """Print the headline figures of a simulation."""
    symbol = CURRENCY_SYMBOLS.get(currency, "")
    print("Summary")
    print("-" * 72)
    print(f"Down payment       : {symbol} {result.down_payment_amount:,.2f}")
    print(f"BBP subsidy        : {symbol} {result.subsidy_value:,.2f}")
    print(f"Financed amount    : {symbol} {result.financed_amount:,.2f}")
    if result.initial_costs_total:
        print(f"Initial costs      : {symbol} {result.initial_costs_total:,.2f}")
    print(f"Loan amount        : {symbol} {result.loan_amount:,.2f}")
    print(f"Monthly rate (TEM) : {result.monthly_rate * 100:.4f}%")
    print(f"Monthly payment    : {symbol} {result.monthly_payment:,.2f}")
    print(f"Total interest     : {symbol} {result.total_interest:,.2f}")
    print(f"Life insurance     : {symbol} {result.insurance_life:,.2f}")
    print(f"Property insurance : {symbol} {result.insurance_risk:,.2f}")
    print(f"Periodic fees      : {symbol} {result.periodic_fees:,.2f}")
    print(f"TCEA               : {result.tcea:.4f}%")
    print(f"TREA               : {result.trea:.4f}%")
    print(f"VAN                : {symbol} {result.van:,.2f}")
    print(f"TIR (monthly)      : {result.tir:.4f}%")
    print(f"Periods            : {len(result.schedule)}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleRow]) -> None:
    """Print the amortization schedule as a tab-separated table."""
    headers = [
        "Period",
        "Date",
        "Opening",
        "Interest",
        "Principal",
        "LifeIns",
        "PropIns",
        "Fees",
        "Payment",
        "Closing",
    ]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.period),
                    row.date.strftime("%Y-%m") if row.date else "-",
                    f"{row.opening_balance:.2f}",
                    f"{row.interest:.2f}",
                    f"{row.principal_paid:.2f}",
                    f"{row.life_insurance:.2f}",
                    f"{row.property_insurance:.2f}",
                    f"{row.fixed_fees:.2f}",
                    f"{row.total_payment:.2f}",
                    f"{row.closing_balance:.2f}",
                ]
            )
        )


def print_comparison(comparison: Dict[str, Any], names: Sequence[str]) -> None:
    """Print the output of ``compare_many`` side by side.

    The lowest value of each cost metric is marked with ``*``.
    """
    width = 16
    print("Comparison")
    print("=" * (22 + (width + 1) * len(names)))
    print(f"{'Metric':22s}" + "".join(f" {name[:width]:>{width}s}" for name in names))
    best = comparison.get("best", {})
    for metric, values in comparison["metrics"].items():
        cells = []
        for index, value in enumerate(values):
            mark = "*" if best.get(metric) == index else " "
            cells.append(f" {value:>{width - 1},.2f}{mark}")
        print(f"{_METRIC_LABELS.get(metric, metric):22s}" + "".join(cells))
    print("=" * (22 + (width + 1) * len(names)))
