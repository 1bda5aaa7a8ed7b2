# brightland/domain/proration.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")


def round_cents(value: Any) -> float:
    """Round half-up to the nearest cent (not banker's rounding)."""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


@dataclass(frozen=True)
class FirstPayment:
    amount: float
    is_prorated: bool
    days_in_month: int
    days_remaining: int
    due: date


def compute_first_payment(*, monthly_rent: float, lease_start: date) -> FirstPayment:
    """
    First rent payment for a lease.

    Starting on the 1st pays a full month. Any other start day pays for the
    days from the start day through month end, inclusive:
        rent / days_in_month * (days_in_month - day + 1)
    rounded half-up to cents.
    """
    dim = days_in_month(lease_start)
    day = lease_start.day

    if day == 1:
        return FirstPayment(
            amount=round_cents(monthly_rent),
            is_prorated=False,
            days_in_month=dim,
            days_remaining=dim,
            due=lease_start,
        )

    remaining = dim - day + 1
    # Divide before multiplying, then round once: 900 / 30 * 16 == 480.00
    raw = Decimal(str(monthly_rent)) / Decimal(dim) * Decimal(remaining)
    return FirstPayment(
        amount=round_cents(raw),
        is_prorated=True,
        days_in_month=dim,
        days_remaining=remaining,
        due=lease_start,
    )
