from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.enums import Presence
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def require_positive_id(value, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid id")
    if parsed <= 0:
        raise ValidationError(f"{field_name} is not a valid id")
    return parsed


def require_presence(value) -> Presence:
    if isinstance(value, Presence):
        return value
    try:
        return Presence(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown presence value: {value!r}")


def require_date(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def optional_bool(value) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ValidationError(f"Not a boolean value: {value!r}")
