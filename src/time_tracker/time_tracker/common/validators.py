from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_positive_int(value: Any, field_name: str):
    """Coerce request input into a positive int, or None when absent."""
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number
