"""Parsing and date helpers shared by the CLI, the web layer and the engine."""

from __future__ import annotations

import calendar
from datetime import date


def parse_year_month(ym: str) -> date:
    """Parse a ``YYYY-MM`` string into the first day of that month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), 1)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Due date ``months`` instalments after ``dt``.

    A due day that the target month lacks (the 31st in April) moves to that
    month's last day.
    """
    year, month_index = divmod(dt.year * 12 + dt.month - 1 + months, 12)
    last_day = calendar.monthrange(year, month_index + 1)[1]
    return date(year, month_index + 1, min(dt.day, last_day))


def parse_amount(value: str) -> float:
    """Parse a money amount with optional thousands separators and suffix.

    Accepts plain numbers ("150000", "150,000.50") and the ``k``/``m``
    shorthands ("150k" is 150 000).
    """
    cleaned = value.strip().lower().replace(",", "")
    for prefix in ("s/.", "s/", "$"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):].strip()
            break
    factor = 1.0
    if cleaned.endswith("k"):
        factor = 1_000.0
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = 1_000_000.0
        cleaned = cleaned[:-1]
    try:
        return float(cleaned) * factor
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {value}") from exc


def parse_percent(value: str) -> float:
    """Parse a percentage such as ``"9.5"`` or ``"9.5%"`` into percent units."""
    cleaned = value.strip()
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1]
    try:
        return float(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid percentage: {value}") from exc


def round_money(value: float) -> float:
    """Round a money amount to cents for display."""
    return round(value, 2)
