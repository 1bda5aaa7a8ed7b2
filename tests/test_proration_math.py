# tests/test_proration_math.py
from __future__ import annotations

from datetime import date

from brightland.domain.proration import compute_first_payment, days_in_month, round_cents


def test_mid_month_start_is_prorated_over_remaining_days():
    # September has 30 days; the 15th through the 30th is 16 days
    fp = compute_first_payment(monthly_rent=900, lease_start=date(2026, 9, 15))
    assert fp.is_prorated is True
    assert fp.days_in_month == 30
    assert fp.days_remaining == 16
    assert fp.amount == 480.00
    assert fp.due == date(2026, 9, 15)


def test_first_of_month_start_pays_full_rent():
    fp = compute_first_payment(monthly_rent=900, lease_start=date(2026, 9, 1))
    assert fp.is_prorated is False
    assert fp.amount == 900.00


def test_last_day_of_month_pays_one_day():
    fp = compute_first_payment(monthly_rent=3100, lease_start=date(2026, 10, 31))
    assert fp.days_remaining == 1
    assert fp.amount == 100.00


def test_leap_february_uses_29_days():
    assert days_in_month(date(2024, 2, 10)) == 29
    fp = compute_first_payment(monthly_rent=1000, lease_start=date(2024, 2, 15))
    # 1000 / 29 * 15 = 517.2413...
    assert fp.days_remaining == 15
    assert fp.amount == 517.24


def test_round_cents_is_half_up_not_bankers():
    assert round_cents(2.675) == 2.68
    assert round_cents(0.125) == 0.13
    assert round_cents(0.124) == 0.12
    assert round_cents(10) == 10.00
