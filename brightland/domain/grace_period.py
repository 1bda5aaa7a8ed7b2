# brightland/domain/grace_period.py
from __future__ import annotations

from datetime import datetime, timedelta

SECONDS_PER_DAY = 86400
DEFAULT_GRACE_DAYS = 14


def purge_date(deleted_at: datetime, *, grace_days: int = DEFAULT_GRACE_DAYS) -> datetime:
    return deleted_at + timedelta(days=int(grace_days))


def days_left(deleted_at: datetime, now: datetime, *, grace_days: int = DEFAULT_GRACE_DAYS) -> int:
    """
    Whole days until a soft-deleted request becomes eligible for purge.

    grace_days - floor(elapsed / 1 day), never below zero.
    """
    elapsed = int((now - deleted_at).total_seconds() // SECONDS_PER_DAY)
    return max(0, int(grace_days) - elapsed)


def purge_cutoff(now: datetime, *, grace_days: int = DEFAULT_GRACE_DAYS) -> datetime:
    """Requests deleted at or before this instant are past their grace period."""
    return now - timedelta(days=int(grace_days))
