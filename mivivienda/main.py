"""Command-line interface for the MiVivienda mortgage simulator.

This module uses ``click`` to implement a multi-command interface. Users can
compute full amortization schedules, view the summary metrics, compare saved
scenarios, convert rates and estimate the BBP subsidy. Results can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from .config import Settings
from .data_models import (
    CAPITALIZATION_PERIODS,
    CURRENCIES,
    DOWN_PAYMENT_TYPES,
    GRACE_PERIOD_TYPES,
    HOUSING_TYPES,
    INCOME_TIERS,
    RATE_TYPES,
    TERM_UNITS,
    ZONES,
    ApplicantProfile,
    CalculationResult,
    InitialCosts,
    LoanInputs,
    PeriodicCharges,
)
from .exceptions import MiViviendaError
from .exchange import ExchangeRateClient, FixedRateProvider
from .formatter import print_comparison, print_schedule, print_summary
from .logging import setup_logging
from .metrics import compare_many, compute
from .rates import to_monthly_rate
from .serialization import inputs_from_dict, inputs_to_dict, result_to_dict
from .subsidy import SubsidyCalculator
from .utils import parse_amount, parse_percent, parse_year_month

MAX_PRINTED_ROWS = 120


def _amount(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _percent(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return parse_percent(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


_PROFILE_OPTIONS = [
    click.option("--housing-type", type=click.Choice(HOUSING_TYPES), default="Traditional", help="Housing type for the BBP"),
    click.option("--income", callback=_amount, help="Monthly household income (soles)"),
    click.option("--age", type=int, help="Age of the main applicant"),
    click.option("--region", help="Department (region) of the property"),
    click.option("--zone", type=click.Choice(ZONES), default="urban", help="Urban or rural zone"),
    click.option("--household-size", type=int, default=0, help="People in the household"),
    click.option("--minors", type=int, default=0, help="Minors in the household"),
    click.option("--income-tier", type=click.Choice(INCOME_TIERS), help="Declared income tier"),
    click.option("--senior", is_flag=True, help="Senior citizen"),
    click.option("--displaced", is_flag=True, help="Displaced person"),
    click.option("--returnee", is_flag=True, help="Returning migrant"),
    click.option("--disabled", is_flag=True, help="Person with disability"),
]

_PRICE_OPTIONS = [
    click.option("--price", "-p", "price", required=True, callback=_amount, help="Property price"),
    click.option("--currency", "-c", type=click.Choice(CURRENCIES), default="PEN", help="Loan currency"),
    click.option("--exchange-rate", type=float, help="Fixed PEN-per-USD buy rate instead of querying the SBS service"),
]

_LOAN_OPTIONS = [
    click.option("--down-payment", "-d", "down_payment", default="0", callback=_amount, help="Down payment (amount or percent)"),
    click.option("--down-payment-type", type=click.Choice(DOWN_PAYMENT_TYPES), default="amount", help="How to read --down-payment"),
    click.option("--rate", "-r", "rate", required=True, callback=_percent, help="Interest rate (percent)"),
    click.option("--rate-type", type=click.Choice(RATE_TYPES), default="TEA", help="Rate type"),
    click.option("--capitalization", type=click.Choice(CAPITALIZATION_PERIODS), help="Capitalization period (TNA only)"),
    click.option("--term", "-t", "term", required=True, type=int, help="Loan term"),
    click.option("--term-unit", type=click.Choice(TERM_UNITS), default="years", help="Unit of --term"),
    click.option("--grace", type=click.Choice(GRACE_PERIOD_TYPES), default="none", help="Grace period type"),
    click.option("--grace-months", type=int, default=0, help="Grace period length in months"),
    click.option("--notary", default="0", callback=_amount, help="Notary costs"),
    click.option("--registration", default="0", callback=_amount, help="Registration costs"),
    click.option("--appraisal", default="0", callback=_amount, help="Appraisal cost"),
    click.option("--study-commission", default="0", callback=_amount, help="Study commission"),
    click.option("--activation-commission", default="0", callback=_amount, help="Activation commission"),
    click.option("--life-insurance", default="0", callback=_percent, help="Life insurance rate per period (percent)"),
    click.option("--property-insurance", default="0", callback=_percent, help="Property insurance annual rate (percent)"),
    click.option("--mailing-fee", default="0", callback=_amount, help="Mailing fee per period"),
    click.option("--admin-fee", default="0", callback=_amount, help="Administration fee per period"),
    click.option("--periodic-commission", default="0", callback=_amount, help="Commission per period"),
    click.option("--frequency", type=click.Choice(["12", "24", "52"]), default="12", help="Charge periods per year"),
    click.option("--discount-rate", default="5", callback=_percent, help="Annual COK rate for the VAN (percent)"),
    click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM)"),
]


def _apply(options: List[Callable]) -> Callable:
    def decorator(func: Callable) -> Callable:
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


def build_profile_from_options(options: Dict[str, Any]) -> ApplicantProfile:
    return ApplicantProfile(
        age=options.get("age"),
        monthly_income=options.get("income"),
        region=options.get("region"),
        zone=options.get("zone") or "urban",
        household_size=options.get("household_size") or 0,
        minors=options.get("minors") or 0,
        declared_income_tier=options.get("income_tier"),
        senior=bool(options.get("senior")),
        displaced=bool(options.get("displaced")),
        returnee=bool(options.get("returnee")),
        disabled=bool(options.get("disabled")),
        housing_type=options.get("housing_type") or "Traditional",
    )


def build_inputs_from_options(options: Dict[str, Any]) -> LoanInputs:
    """Assemble ``LoanInputs`` from parsed command-line options."""
    start_date = None
    if options.get("start_date"):
        try:
            start_date = parse_year_month(options["start_date"])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    return LoanInputs(
        property_price=options["price"],
        down_payment=options["down_payment"],
        down_payment_type=options["down_payment_type"],
        currency=options["currency"],
        rate=options["rate"],
        rate_type=options["rate_type"],
        capitalization_period=options.get("capitalization"),
        term_value=options["term"],
        term_unit=options["term_unit"],
        grace_period_type=options["grace"],
        grace_period_months=options["grace_months"],
        initial_costs=InitialCosts(
            notary=options["notary"],
            registration=options["registration"],
            appraisal=options["appraisal"],
            study_commission=options["study_commission"],
            activation_commission=options["activation_commission"],
        ),
        periodic_charges=PeriodicCharges(
            life_insurance_rate=options["life_insurance"],
            property_insurance_rate=options["property_insurance"],
            mailing_fee=options["mailing_fee"],
            admin_fee=options["admin_fee"],
            periodic_commission=options["periodic_commission"],
            frequency_per_year=int(options["frequency"]),
        ),
        discount_rate=options["discount_rate"],
        applicant_profile=build_profile_from_options(options),
        start_date=start_date,
    )


def make_rate_provider(exchange_rate: Optional[float]) -> Any:
    """Return a fixed-rate provider when a rate is given, else the SBS client."""
    if exchange_rate is not None:
        try:
            return FixedRateProvider(exchange_rate)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    return ExchangeRateClient.from_settings(Settings.from_env())


def run_compute(inputs: LoanInputs, exchange_rate: Optional[float]) -> CalculationResult:
    provider = make_rate_provider(exchange_rate) if inputs.currency == "USD" else None
    try:
        return compute(inputs, provider)
    except MiViviendaError as exc:
        raise click.ClickException(str(exc))


def export_to_json(path: Path, inputs: LoanInputs, result: CalculationResult, include_schedule: bool = True) -> None:
    """Export inputs, summary and (optionally) the schedule to a JSON file."""
    data = {"inputs": inputs_to_dict(inputs), "results": result_to_dict(result, include_schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: CalculationResult) -> None:
    """Export the schedule to a CSV file."""
    header = [
        "Period",
        "Date",
        "Opening_Balance",
        "Interest",
        "Principal",
        "Life_Insurance",
        "Property_Insurance",
        "Fixed_Fees",
        "Total_Periodic_Cost",
        "Total_Payment",
        "Closing_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in result.schedule:
            writer.writerow(
                [
                    row.period,
                    row.date.isoformat() if row.date else "",
                    round(row.opening_balance, 2),
                    round(row.interest, 2),
                    round(row.principal_paid, 2),
                    round(row.life_insurance, 2),
                    round(row.property_insurance, 2),
                    round(row.fixed_fees, 2),
                    round(row.total_periodic_cost, 2),
                    round(row.total_payment, 2),
                    round(row.closing_balance, 2),
                ]
            )


@click.group()
@click.option("--log-level", default="WARNING", show_default=True, help="Logging level")
def cli(log_level: str) -> None:
    """Mortgage simulator for the MiVivienda programme."""
    setup_logging(log_level)


@cli.command()
@_apply(_PRICE_OPTIONS + _LOAN_OPTIONS + _PROFILE_OPTIONS)
@click.option("--output", "-o", "output", type=str, help="Output file path (.json or .csv)")
def schedule(output: Optional[str], **options: Any) -> None:
    """Compute and print the full amortization schedule."""
    inputs = build_inputs_from_options(options)
    result = run_compute(inputs, options.get("exchange_rate"))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, inputs, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(result, inputs.currency)
    rows = result.schedule
    if len(rows) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(rows)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        rows = rows[:MAX_PRINTED_ROWS]
    print_schedule(rows)


@cli.command()
@_apply(_PRICE_OPTIONS + _LOAN_OPTIONS + _PROFILE_OPTIONS)
@click.option("--output", "-o", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: Any) -> None:
    """Compute and print only the summary metrics."""
    inputs = build_inputs_from_options(options)
    result = run_compute(inputs, options.get("exchange_rate"))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        export_to_json(path, inputs, result, include_schedule=False)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result, inputs.currency)


@cli.command()
@click.argument("scenarios", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--exchange-rate", type=float, help="Fixed PEN-per-USD buy rate for USD scenarios")
def compare(scenarios: tuple, exchange_rate: Optional[float]) -> None:
    """Compare two to four scenarios stored as JSON input files.

    Each file holds the loan inputs, either at the top level or under an
    ``inputs`` key (the format written by ``schedule --output``).
    """
    if not 2 <= len(scenarios) <= 4:
        raise click.UsageError("Provide between 2 and 4 scenario files")
    results = []
    for path in scenarios:
        with path.open("r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise click.BadParameter(f"{path} is not valid JSON: {exc}")
        if isinstance(data, dict) and "inputs" in data:
            data = data["inputs"]
        try:
            inputs = inputs_from_dict(data)
        except MiViviendaError as exc:
            raise click.ClickException(f"{path}: {exc}")
        results.append(run_compute(inputs, exchange_rate))
    print_comparison(compare_many(results), [path.stem for path in scenarios])


@cli.command()
@click.argument("rate", callback=_percent)
@click.option("--type", "rate_type", type=click.Choice(RATE_TYPES), default="TEA", help="Rate type")
@click.option("--capitalization", type=click.Choice(CAPITALIZATION_PERIODS), help="Capitalization period (TNA only)")
def rate(rate: float, rate_type: str, capitalization: Optional[str]) -> None:
    """Convert a quoted rate to the effective monthly rate."""
    try:
        monthly = to_monthly_rate(rate, rate_type, capitalization)
    except MiViviendaError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"TEM: {monthly * 100:.6f}%")


@cli.command()
@_apply(_PRICE_OPTIONS + _PROFILE_OPTIONS)
def bonus(**options: Any) -> None:
    """Estimate the BBP subsidy for a property and household."""
    currency = options["currency"]
    provider = make_rate_provider(options.get("exchange_rate")) if currency == "USD" else None
    profile = build_profile_from_options(options)
    try:
        amount = SubsidyCalculator(provider).compute(options["price"], currency, profile)
    except MiViviendaError as exc:
        raise click.ClickException(str(exc))
    symbol = "$" if currency == "USD" else "S/"
    click.echo(f"BBP subsidy: {symbol} {amount:,.2f}")


if __name__ == "__main__":
    cli()
