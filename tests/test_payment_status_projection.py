# tests/test_payment_status_projection.py
from __future__ import annotations

from datetime import date, datetime

from brightland.domain.payment_status import next_due_after, project_rent_status


def test_unknown_schedule_is_current():
    assert project_rent_status(None, datetime(2026, 10, 2)) == "current"


def test_before_or_on_due_date_is_current():
    assert project_rent_status(date(2026, 10, 1), date(2026, 9, 30)) == "current"
    assert project_rent_status(date(2026, 10, 1), date(2026, 10, 1)) == "current"


def test_unsettled_due_date_in_the_past_is_late():
    assert project_rent_status(date(2026, 10, 1), date(2026, 10, 2)) == "late"
    assert project_rent_status(date(2026, 8, 1), date(2026, 10, 2)) == "late"


def test_late_payment_for_the_due_cycle_is_current():
    # Oct 1 cycle settled on Oct 3 moves the next due date to Nov 1
    assert project_rent_status(date(2026, 11, 1), date(2026, 10, 3)) == "current"
    assert project_rent_status(date(2026, 11, 1), date(2026, 10, 31)) == "current"


def test_on_time_payment_is_current():
    assert project_rent_status(date(2026, 11, 1), date(2026, 10, 1)) == "current"


def test_two_cycles_settled_is_paid_ahead():
    assert project_rent_status(date(2026, 12, 1), date(2026, 10, 1)) == "paid_ahead"
    assert project_rent_status(date(2026, 12, 1), date(2026, 10, 20)) == "paid_ahead"


def test_settling_next_cycle_before_it_is_due_is_paid_ahead():
    # October cycle settled on Sept 28
    assert project_rent_status(date(2026, 11, 1), date(2026, 9, 28)) == "paid_ahead"


def test_next_due_after_walks_the_schedule_both_ways():
    assert next_due_after(date(2026, 10, 1), date(2026, 9, 30)) == date(2026, 10, 1)
    assert next_due_after(date(2026, 10, 1), date(2026, 10, 1)) == date(2026, 11, 1)
    assert next_due_after(date(2026, 12, 1), date(2026, 10, 5)) == date(2026, 11, 1)
    assert next_due_after(date(2026, 8, 1), date(2026, 10, 5)) == date(2026, 11, 1)


def test_datetime_inputs_are_accepted():
    assert project_rent_status(datetime(2026, 10, 1, 8), datetime(2026, 10, 3, 9)) == "late"
