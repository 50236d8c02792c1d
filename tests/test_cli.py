"""Tests for the command-line interface."""

import csv
import json
from pathlib import Path

from click.testing import CliRunner

from mivivienda.main import cli
from mivivienda.rates import to_monthly_rate

LOAN_ARGS = ["-p", "150000", "-d", "20", "--down-payment-type", "percentage", "-r", "9.5", "-t", "20"]


def _run(*args: str):
    return CliRunner().invoke(cli, list(args))


class TestSummary:
    def test_prints_metrics(self) -> None:
        result = _run("summary", *LOAN_ARGS)
        assert result.exit_code == 0, result.output
        assert "BBP subsidy        : S/ 20,900.00" in result.output
        assert "Financed amount    : S/ 99,100.00" in result.output
        assert "TCEA" in result.output

    def test_amount_shorthand(self) -> None:
        result = _run("summary", "-p", "150k", "-d", "30,000", "-r", "9.5%", "-t", "20")
        assert result.exit_code == 0, result.output
        assert "Down payment       : S/ 30,000.00" in result.output

    def test_usd_with_fixed_rate(self) -> None:
        result = _run(
            "summary", "-p", "40000", "-c", "USD", "--exchange-rate", "4.0",
            "-d", "20", "--down-payment-type", "percentage", "-r", "9.5", "-t", "20",
        )
        assert result.exit_code == 0, result.output
        assert "BBP subsidy        : $ 5,225.00" in result.output

    def test_json_export(self, tmp_path: Path) -> None:
        out = tmp_path / "summary.json"
        result = _run("summary", *LOAN_ARGS, "-o", str(out))
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["inputs"]["property_price"] == 150000
        assert data["results"]["subsidy_value"] == 20900
        assert "schedule" not in data["results"]

    def test_rejects_non_json_export(self, tmp_path: Path) -> None:
        result = _run("summary", *LOAN_ARGS, "-o", str(tmp_path / "summary.txt"))
        assert result.exit_code == 2

    def test_invalid_loan_is_reported(self) -> None:
        result = _run("summary", "-p", "150000", "-d", "200000", "-r", "9.5", "-t", "20")
        assert result.exit_code == 1
        assert "Down payment must be between" in result.output

    def test_bad_amount(self) -> None:
        result = _run("summary", "-p", "lots", "-r", "9.5", "-t", "20")
        assert result.exit_code == 2
        assert "Invalid amount" in result.output

    def test_nominal_rate_needs_capitalization(self) -> None:
        result = _run("summary", *LOAN_ARGS, "--rate-type", "TNA")
        assert result.exit_code == 1


class TestSchedule:
    def test_prints_table(self) -> None:
        result = _run("schedule", *LOAN_ARGS, "-s", "2025-01")
        assert result.exit_code == 0, result.output
        assert "showing first 120 rows" in result.output
        assert "2025-01" in result.output

    def test_csv_export(self, tmp_path: Path) -> None:
        out = tmp_path / "schedule.csv"
        result = _run("schedule", *LOAN_ARGS, "-s", "2025-01", "-o", str(out))
        assert result.exit_code == 0, result.output
        with out.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Period"
        assert len(rows) == 241
        assert rows[1][1] == "2025-01-01"
        assert float(rows[-1][-1]) == 0.0

    def test_json_export(self, tmp_path: Path) -> None:
        out = tmp_path / "schedule.json"
        result = _run("schedule", *LOAN_ARGS, "--grace", "partial", "--grace-months", "6", "-o", str(out))
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert len(data["results"]["schedule"]) == 240
        assert data["results"]["schedule"][0]["principal_paid"] == 0

    def test_bad_start_date(self) -> None:
        result = _run("schedule", *LOAN_ARGS, "-s", "January")
        assert result.exit_code == 2


class TestCompare:
    def _write(self, path: Path, data: dict) -> Path:
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_two_scenarios(self, tmp_path: Path) -> None:
        base = {"property_price": 150000, "down_payment": 30000, "rate": 9.5, "term_value": 20}
        first = self._write(tmp_path / "bank_a.json", base)
        second = self._write(tmp_path / "bank_b.json", {"inputs": dict(base, rate=8.0)})
        result = _run("compare", str(first), str(second))
        assert result.exit_code == 0, result.output
        assert "Comparison" in result.output
        assert "bank_a" in result.output and "bank_b" in result.output

    def test_reads_exported_files(self, tmp_path: Path) -> None:
        out = tmp_path / "exported.json"
        assert _run("summary", *LOAN_ARGS, "-o", str(out)).exit_code == 0
        other = self._write(
            tmp_path / "other.json", {"property_price": 150000, "down_payment": 30000, "rate": 11, "term_value": 15}
        )
        result = _run("compare", str(out), str(other))
        assert result.exit_code == 0, result.output

    def test_needs_two_files(self, tmp_path: Path) -> None:
        only = self._write(tmp_path / "only.json", {"property_price": 1, "rate": 1, "term_value": 1})
        result = _run("compare", str(only))
        assert result.exit_code == 2

    def test_invalid_scenario(self, tmp_path: Path) -> None:
        good = self._write(tmp_path / "good.json", {"property_price": 150000, "rate": 9.5, "term_value": 20})
        bad = self._write(tmp_path / "bad.json", {"property_price": 150000, "term_value": 20})
        result = _run("compare", str(good), str(bad))
        assert result.exit_code == 1
        assert "bad.json" in result.output


class TestRateAndBonus:
    def test_rate_conversion(self) -> None:
        result = _run("rate", "12", "--type", "TEA")
        assert result.exit_code == 0, result.output
        assert f"TEM: {to_monthly_rate(12, 'TEA') * 100:.6f}%" in result.output

    def test_nominal_rate(self) -> None:
        result = _run("rate", "12", "--type", "TNA", "--capitalization", "monthly")
        assert "TEM: 1.000000%" in result.output

    def test_nominal_rate_without_capitalization(self) -> None:
        assert _run("rate", "12", "--type", "TNA").exit_code == 1

    def test_bonus(self) -> None:
        result = _run("bonus", "-p", "90000", "--income", "3000")
        assert result.exit_code == 0, result.output
        assert "BBP subsidy: S/ 31,000.00" in result.output

    def test_bonus_in_usd(self) -> None:
        result = _run("bonus", "-p", "30000", "-c", "USD", "--exchange-rate", "4.0", "--income", "6000")
        assert result.exit_code == 0, result.output
        assert "BBP subsidy: $ 5,700.00" in result.output
