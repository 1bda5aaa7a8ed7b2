# brightland/domain/payment_status.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from .billing_schedule import add_months

DateLike = Union[date, datetime]

CURRENT = "current"
LATE = "late"
PAID_AHEAD = "paid_ahead"


def _as_date(v: Optional[DateLike]) -> Optional[date]:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v.date()
    return v


def next_due_after(next_payment_date: date, today: date) -> date:
    """
    First due date on the lease's monthly schedule strictly after today.

    The schedule is next_payment_date shifted by whole months in either
    direction, so this also works when next_payment_date is several cycles out.
    """
    d = next_payment_date
    while d > today:
        prev = add_months(d, -1)
        if prev <= today:
            return d
        d = prev
    while d <= today:
        d = add_months(d, 1)
    return d


def project_rent_status(next_payment_date: Optional[DateLike], now: DateLike) -> str:
    """
    Display-only rent standing, counted in billing cycles.

    next_payment_date is the first due date no payment has settled yet
    (recording a payment for a cycle moves it forward one month).

    late        that due date has already passed
    paid_ahead  a cycle that is not due yet has already been settled
    current     otherwise (also when no schedule exists yet)

    When a payment was made does not matter, only which cycle it settled.
    """
    due = _as_date(next_payment_date)
    today = _as_date(now)
    if due is None or today is None:
        return CURRENT

    if today > due:
        return LATE

    if due > next_due_after(due, today):
        return PAID_AHEAD

    return CURRENT
