from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import MalformedInput, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_minutes(value, field_name: str, *, maximum: Optional[int] = None) -> int:
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number of minutes")
    if minutes < 0:
        raise ValidationError(f"{field_name} must not be negative")
    if maximum is not None and minutes > maximum:
        raise ValidationError(f"{field_name} must not exceed {maximum}")
    return minutes


def optional_text(value: Any, field_name: str = "text") -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedInput(f"{field_name} must be a string")
    return value.strip() or None
