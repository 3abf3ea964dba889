from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import ValidationError
from .time_utils import parse_iso_date


def require_fields(payload: dict, *fields: str) -> None:
    """Raise ValidationError naming every required field that is missing or blank."""
    missing = [
        f for f in fields
        if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload.get(f).strip())
    ]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}", fields=missing)


def parse_text(value: Any, field: str, *, required: bool = True) -> str | None:
    """
    Trimmed string field. Non-string values are rejected instead of coerced.

    A missing or blank required value is reported as missing; an optional
    None stays None.
    """
    if value is None:
        if required:
            raise ValidationError(f"Missing required field(s): {field}", fields=[field])
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = value.strip()
    if required and not text:
        raise ValidationError(f"Missing required field(s): {field}", fields=[field])
    return text


def parse_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    allowed = tuple(choices)
    normalized = str(value).strip().lower() if value is not None else ""
    if normalized not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}")
    return normalized


def parse_int(value: Any, field: str, *, minimum: int | None = None) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be an integer")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def parse_optional_int(value: Any, field: str, *, minimum: int | None = None) -> int | None:
    if value is None or value == "":
        return None
    return parse_int(value, field, minimum=minimum)


def parse_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number")
    return result


def parse_date_field(value: Any, field: str) -> date:
    """Parse a YYYY-MM-DD request field; blank or malformed values are rejected."""
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)")
    if parsed is None:
        raise ValidationError(f"Missing required field(s): {field}", fields=[field])
    return parsed


def parse_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean")
    return value
