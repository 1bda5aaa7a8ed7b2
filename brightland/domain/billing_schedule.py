# brightland/domain/billing_schedule.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime]


def _as_date(v: DateLike) -> date:
    if isinstance(v, datetime):
        return v.date()
    return v


def add_months(d: date, months: int) -> date:
    """Calendar month addition; the day clamps to the end of the target month."""
    idx = d.year * 12 + (d.month - 1) + int(months)
    y, m = divmod(idx, 12)
    m += 1
    last = calendar.monthrange(y, m)[1]
    return date(y, m, min(d.day, last))


def first_of_next_month(d: date) -> date:
    return add_months(date(d.year, d.month, 1), 1)


@dataclass(frozen=True)
class BillingSchedule:
    """
    How a recurring rent plan is created at the gateway.

    Exactly one of billing_anchor / trial_end is set:
      - billing_anchor: charge now, pinned to this date every month
      - trial_end: defer the first charge until this date
    """

    first_billing_date: date
    immediate: bool
    billing_anchor: Optional[date]
    trial_end: Optional[date]
    next_payment_date: date


def first_billing_date(*, lease_start: date, is_prorated: bool) -> date:
    if is_prorated and lease_start.day != 1:
        return first_of_next_month(lease_start)
    return lease_start


def plan_schedule(*, lease_start: date, is_prorated: bool, now: DateLike) -> BillingSchedule:
    """
    Deterministic for a given (lease_start, is_prorated, today): re-reading the
    persisted lease fields reproduces the same schedule.
    """
    today = _as_date(now)
    fbd = first_billing_date(lease_start=lease_start, is_prorated=is_prorated)

    if fbd <= today:
        return BillingSchedule(
            first_billing_date=fbd,
            immediate=True,
            billing_anchor=fbd,
            trial_end=None,
            next_payment_date=add_months(fbd, 1),
        )

    return BillingSchedule(
        first_billing_date=fbd,
        immediate=False,
        billing_anchor=None,
        trial_end=fbd,
        next_payment_date=fbd,
    )
