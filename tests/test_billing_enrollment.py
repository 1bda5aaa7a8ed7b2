# tests/test_billing_enrollment.py
from __future__ import annotations

from datetime import date, datetime

import pytest

from brightland.auth import Actor
from brightland.errors import GatewayError, PermissionDenied, PreconditionError
from brightland.services.billing_enrollment import enable_auto_pay
from brightland.services.rental_applications import update_application_status


def test_enrollment_succeeds_once_and_second_call_changes_nothing(db, ready_lease, tenant_actor, gateway):
    now = datetime(2026, 9, 20, 10, 0)

    res = enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=now)
    assert res.application.auto_pay_enabled is True
    assert res.subscription_ref.startswith("sub_")
    assert res.application.next_payment_date == date(2026, 10, 1)
    assert res.application.rent_payment_status == "current"

    db.refresh(ready_lease)
    snapshot = ready_lease.model_dump()

    with pytest.raises(PreconditionError) as e:
        enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=now)
    assert e.value.code == "already_enrolled"

    db.refresh(ready_lease)
    assert ready_lease.model_dump() == snapshot
    assert gateway.ops().count("create_recurring_plan") == 1


def test_future_first_billing_uses_trial(db, ready_lease, tenant_actor, gateway):
    enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 9, 20))
    _, call = gateway.calls[-1]
    assert call["trial_end"] == date(2026, 10, 1)
    assert call["billing_anchor"] is None
    assert call["amount"] == 900.0
    assert call["interval"] == "month"
    assert call["source_ref"] == "ba_ready"


def test_past_first_billing_is_anchored_and_next_is_a_month_later(db, ready_lease, tenant_actor, gateway):
    res = enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 10, 5))
    _, call = gateway.calls[-1]
    assert call["billing_anchor"] == date(2026, 10, 1)
    assert call["trial_end"] is None
    assert res.schedule.immediate is True
    assert res.application.next_payment_date == date(2026, 11, 1)


@pytest.mark.parametrize(
    "overrides, code",
    [
        ({}, "checking_account_required"),
        ({"has_checking_account": True}, "credit_card_required"),
        ({"has_checking_account": True, "has_credit_card": True}, "security_deposit_required"),
        (
            {"has_checking_account": True, "has_credit_card": True, "security_deposit_paid": True, "lease_end_date": None},
            "lease_dates_required",
        ),
        (
            {"has_checking_account": True, "has_credit_card": True, "security_deposit_paid": True, "monthly_rent": 0.0},
            "monthly_rent_required",
        ),
        (
            {"has_checking_account": True, "has_credit_card": True, "security_deposit_paid": True},
            "gateway_source_required",
        ),
    ],
)
def test_preconditions_are_checked_in_order(db, make_lease, tenant_actor, gateway, overrides, code):
    lease = make_lease(**overrides)
    with pytest.raises(PreconditionError) as e:
        enable_auto_pay(db, application_id=lease.id, actor=tenant_actor, gateway=gateway)
    assert e.value.code == code
    assert gateway.calls == []


def test_already_enrolled_wins_over_missing_prerequisites(db, make_lease, tenant_actor, gateway):
    lease = make_lease(auto_pay_enabled=True)
    with pytest.raises(PreconditionError) as e:
        enable_auto_pay(db, application_id=lease.id, actor=tenant_actor, gateway=gateway)
    assert e.value.code == "already_enrolled"


def test_gateway_failure_leaves_lease_untouched_and_retry_works(db, ready_lease, tenant_actor, gateway):
    snapshot = ready_lease.model_dump()
    gateway.fail_on.add("create_recurring_plan")

    with pytest.raises(GatewayError):
        enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 9, 20))

    db.refresh(ready_lease)
    assert ready_lease.model_dump() == snapshot
    assert ready_lease.auto_pay_enabled is False
    assert ready_lease.subscription_ref is None

    gateway.fail_on.clear()
    res = enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 9, 20))
    assert res.application.auto_pay_enabled is True


def test_other_tenants_cannot_enroll_a_lease(db, ready_lease, gateway):
    stranger = Actor(email="stranger@tenants.local", name="Stranger", role="user")
    with pytest.raises(PermissionDenied):
        enable_auto_pay(db, application_id=ready_lease.id, actor=stranger, gateway=gateway)


def test_approval_computes_proration_once(db, make_lease, admin, notifier):
    lease = make_lease(status="pending", monthly_rent=None, lease_start_date=None, lease_end_date=None, is_prorated=False)

    row = update_application_status(
        db,
        application_id=lease.id,
        actor=admin,
        notifier=notifier,
        status="approved",
        monthly_rent=900,
        lease_start_date="2026-09-15",
        lease_end_date="2027-08-31",
    )
    assert row.status == "approved"
    assert row.is_prorated is True
    assert row.first_payment_amount == 480.00
    assert row.first_payment_due == date(2026, 9, 15)
    assert notifier.sent[0]["to"] == ["tess@tenants.local"]


def test_enrolled_lease_terms_are_locked(db, ready_lease, tenant_actor, admin, gateway, notifier):
    enable_auto_pay(db, application_id=ready_lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 9, 20))
    with pytest.raises(PreconditionError) as e:
        update_application_status(
            db, application_id=ready_lease.id, actor=admin, notifier=notifier, status="approved", monthly_rent=950
        )
    assert e.value.code == "lease_locked"
