"""Conversion of inputs and results to and from JSON-friendly dictionaries."""

from __future__ import annotations

from dataclasses import asdict, fields
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .data_models import (
    ApplicantProfile,
    CalculationResult,
    InitialCosts,
    LoanInputs,
    PeriodicCharges,
    ScheduleRow,
)
from .exceptions import InvalidLoanInputError
from .utils import round_money

# Result fields that are rates rather than money; kept unrounded.
_RATE_FIELDS = {"monthly_rate", "tcea", "trea", "tir"}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def inputs_to_dict(inputs: LoanInputs) -> Dict[str, Any]:
    return serialize_value(asdict(inputs))


def _section(cls: Any, data: Optional[Mapping[str, Any]], name: str) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise InvalidLoanInputError(f"'{name}' must be an object")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise InvalidLoanInputError(f"Unknown fields in '{name}': {', '.join(sorted(unknown))}")
    try:
        return cls(**data)
    except TypeError as exc:
        raise InvalidLoanInputError(f"Invalid '{name}': {exc}") from exc


def _number(data: Mapping[str, Any], key: str, cast: Any = float, default: Any = None) -> Any:
    if key not in data or data[key] is None:
        if default is None:
            raise InvalidLoanInputError(f"Missing required field '{key}'")
        return default
    try:
        return cast(data[key])
    except (TypeError, ValueError) as exc:
        raise InvalidLoanInputError(f"Field '{key}' must be numeric; got {data[key]!r}") from exc


_NUMERIC_CASTS = {"float": float, "int": int, "Optional[float]": float, "Optional[int]": int}
_TEXT_TYPES = ("str", "Optional[str]")


def _coerce_field(f: Any, value: Any, label: str) -> Any:
    """Check one section field against its annotation, casting numeric text."""
    optional = f.type.startswith("Optional[")
    if value is None:
        if optional:
            return None
        raise InvalidLoanInputError(f"Field '{label}' cannot be null")
    if f.type == "bool":
        if not isinstance(value, bool):
            raise InvalidLoanInputError(f"Field '{label}' must be true or false; got {value!r}")
        return value
    if f.type in _TEXT_TYPES:
        if not isinstance(value, str):
            raise InvalidLoanInputError(f"Field '{label}' must be text; got {value!r}")
        return value
    cast = _NUMERIC_CASTS.get(f.type)
    if cast is None:
        return value
    # bool is an int subclass; a flag is never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise InvalidLoanInputError(f"Field '{label}' must be numeric; got {value!r}")
    try:
        return cast(value)
    except ValueError as exc:
        raise InvalidLoanInputError(f"Field '{label}' must be numeric; got {value!r}") from exc


def _coerce_section(cls: Any, section: Any, name: str) -> Any:
    """Rebuild a section dataclass with every field checked against its type."""
    values = {
        f.name: _coerce_field(f, getattr(section, f.name), f"{name}.{f.name}") for f in fields(cls)
    }
    return cls(**values)


def _text(data: Mapping[str, Any], key: str, default: Optional[str]) -> Optional[str]:
    value = data.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise InvalidLoanInputError(f"Field '{key}' must be text; got {value!r}")
    return value


def inputs_from_dict(data: Mapping[str, Any]) -> LoanInputs:
    """Build ``LoanInputs`` from a dictionary such as a parsed JSON body.

    Raises
    ------
    InvalidLoanInputError
        If a required field is missing or a numeric field is not a number.
    """
    if not isinstance(data, Mapping):
        raise InvalidLoanInputError("Loan inputs must be an object")
    start_date = data.get("start_date")
    if start_date:
        try:
            start_date = date.fromisoformat(start_date)
        except (TypeError, ValueError) as exc:
            raise InvalidLoanInputError(f"Invalid start_date: {start_date!r}") from exc
    else:
        start_date = None

    initial_costs = _section(InitialCosts, data.get("initial_costs"), "initial_costs")
    periodic_charges = _section(PeriodicCharges, data.get("periodic_charges"), "periodic_charges")
    applicant_profile = _section(ApplicantProfile, data.get("applicant_profile"), "applicant_profile")

    return LoanInputs(
        property_price=_number(data, "property_price"),
        down_payment=_number(data, "down_payment", default=0.0),
        rate=_number(data, "rate"),
        term_value=_number(data, "term_value", int),
        down_payment_type=_text(data, "down_payment_type", "amount"),
        currency=_text(data, "currency", "PEN"),
        rate_type=_text(data, "rate_type", "TEA"),
        capitalization_period=_text(data, "capitalization_period", None),
        term_unit=_text(data, "term_unit", "years"),
        grace_period_type=_text(data, "grace_period_type", "none"),
        grace_period_months=_number(data, "grace_period_months", int, default=0),
        initial_costs=_coerce_section(InitialCosts, initial_costs, "initial_costs"),
        periodic_charges=_coerce_section(PeriodicCharges, periodic_charges, "periodic_charges"),
        discount_rate=_number(data, "discount_rate", default=5.0),
        applicant_profile=_coerce_section(ApplicantProfile, applicant_profile, "applicant_profile"),
        start_date=start_date,
    )


def schedule_to_rows(schedule: Sequence[ScheduleRow], rounded: bool = True) -> List[Dict[str, Any]]:
    """Convert schedule rows to dictionaries, money rounded to cents by default."""
    rows = []
    for row in schedule:
        item = serialize_value(asdict(row))
        if rounded:
            item = {
                k: round_money(v) if isinstance(v, float) else v for k, v in item.items()
            }
        rows.append(item)
    return rows


def result_to_dict(result: CalculationResult, include_schedule: bool = True) -> Dict[str, Any]:
    """Convert a result for display or storage.

    Money amounts are rounded to cents; rates keep full precision.
    """
    data: Dict[str, Any] = {}
    for f in fields(result):
        if f.name == "schedule":
            continue
        value = getattr(result, f.name)
        data[f.name] = value if f.name in _RATE_FIELDS else round_money(value)
    if include_schedule:
        data["schedule"] = schedule_to_rows(result.schedule)
    return data
