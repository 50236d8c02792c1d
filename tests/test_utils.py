"""Tests for parsing and date helpers."""

from datetime import date

import pytest

from mivivienda.utils import add_months, parse_amount, parse_percent, parse_year_month


class TestAddMonths:
    def test_same_day_next_month(self) -> None:
        assert add_months(date(2025, 1, 15), 1) == date(2025, 2, 15)

    def test_clamps_to_month_end(self) -> None:
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 3, 31), 1) == date(2025, 4, 30)

    def test_crosses_years(self) -> None:
        assert add_months(date(2025, 11, 10), 3) == date(2026, 2, 10)
        assert add_months(date(2025, 1, 10), 239) == date(2044, 12, 10)

    def test_zero_months(self) -> None:
        assert add_months(date(2025, 6, 30), 0) == date(2025, 6, 30)


class TestParsing:
    def test_year_month(self) -> None:
        assert parse_year_month("2025-03") == date(2025, 3, 1)

    @pytest.mark.parametrize("raw", ["2025", "March", "2025-13"])
    def test_bad_year_month(self, raw: str) -> None:
        with pytest.raises(ValueError):
            parse_year_month(raw)

    @pytest.mark.parametrize(
        "raw, expected",
        [("150000", 150000), ("150,000.50", 150000.5), ("150k", 150000), ("1.2m", 1200000), ("S/. 98,100", 98100), ("$40k", 40000)],
    )
    def test_amount(self, raw: str, expected: float) -> None:
        assert parse_amount(raw) == pytest.approx(expected)

    def test_bad_amount(self) -> None:
        with pytest.raises(ValueError, match="Invalid amount"):
            parse_amount("lots")

    def test_percent(self) -> None:
        assert parse_percent("9.5%") == 9.5
        assert parse_percent(" 7 ") == 7.0
