# brightland/services/validation.py
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..errors import ValidationError


def require_text(value: Any, field: str) -> str:
    s = str(value or "").strip()
    if not s:
        raise ValidationError(field, "is required")
    return s


def require_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    allowed = tuple(choices)
    s = str(value or "").strip().lower()
    if s not in allowed:
        raise ValidationError(field, f"must be one of {', '.join(allowed)}")
    return s


def _as_number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    try:
        f = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, "must be a number")
    if not math.isfinite(f):
        raise ValidationError(field, "must be a finite number")
    return f


def optional_amount(value: Any, field: str) -> Optional[float]:
    """None passes through; anything else must be a finite number >= 0."""
    if value is None:
        return None
    f = _as_number(value, field)
    if f < 0:
        raise ValidationError(field, "must not be negative")
    return f


def require_positive_amount(value: Any, field: str) -> float:
    if value is None:
        raise ValidationError(field, "is required")
    f = _as_number(value, field)
    if f <= 0:
        raise ValidationError(field, "must be greater than zero")
    return f


def as_date(value: Any, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(field, "must be an ISO date (YYYY-MM-DD)")
