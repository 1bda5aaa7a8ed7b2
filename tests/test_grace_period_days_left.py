# tests/test_grace_period_days_left.py
from __future__ import annotations

from datetime import datetime, timedelta

from brightland.domain.grace_period import days_left, purge_cutoff, purge_date

T = datetime(2026, 10, 1, 12, 0, 0)


def test_days_left_counts_whole_elapsed_days():
    assert days_left(T, T) == 14
    assert days_left(T, T + timedelta(days=1, seconds=-1)) == 14
    assert days_left(T, T + timedelta(days=1)) == 13
    assert days_left(T, T + timedelta(days=13, hours=23)) == 1


def test_days_left_reaches_zero_and_stays_there():
    assert days_left(T, T + timedelta(days=14)) == 0
    assert days_left(T, T + timedelta(days=40)) == 0


def test_purge_date_and_cutoff():
    assert purge_date(T) == datetime(2026, 10, 15, 12, 0, 0)
    assert purge_cutoff(T + timedelta(days=14)) == T
    assert days_left(T, T, grace_days=7) == 7
