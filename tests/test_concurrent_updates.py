# tests/test_concurrent_updates.py
"""
Two sessions racing on the same row. Session `db` loads the row first, the
other session wins and commits, then `db` tries the same operation with its
stale copy and must lose cleanly.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime

import pytest
from sqlalchemy import select

from brightland.db import SessionLocal
from brightland.errors import PreconditionError
from brightland.models import ConversationMessage, MaintenanceRequest, RentalApplication
from brightland.services import request_lifecycle as lifecycle
from brightland.services.billing_enrollment import enable_auto_pay


@contextmanager
def _other_session():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


def test_enrollment_race_loser_gets_already_enrolled(db, ready_lease, tenant_actor, gateway):
    lease = db.get(RentalApplication, ready_lease.id)
    assert lease.auto_pay_enabled is False

    with _other_session() as other:
        won = enable_auto_pay(
            other, application_id=lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 9, 20)
        )
        winner_sub = won.subscription_ref

    assert lease.auto_pay_enabled is False  # stale copy

    with pytest.raises(PreconditionError) as e:
        enable_auto_pay(db, application_id=lease.id, actor=tenant_actor, gateway=gateway, now=datetime(2026, 9, 21))
    assert e.value.code == "already_enrolled"
    assert gateway.ops().count("create_recurring_plan") == 1

    db.expire_all()
    row = db.get(RentalApplication, lease.id)
    assert row.auto_pay_enabled is True
    assert row.subscription_ref == winner_sub
    assert row.rent_payment_status == "current"


def test_soft_delete_race_loser_gets_already_deleted(db, make_request, admin):
    req = make_request()
    first = datetime(2026, 10, 1, 9, 0)

    with _other_session() as other:
        lifecycle.soft_delete(other, request_id=req.id, actor=admin, now=first)

    assert req.is_deleted is False  # stale copy

    with pytest.raises(PreconditionError) as e:
        lifecycle.soft_delete(db, request_id=req.id, actor=admin, now=datetime(2026, 10, 1, 9, 5))
    assert e.value.code == "already_deleted"

    db.expire_all()
    row = db.get(MaintenanceRequest, req.id)
    assert row.is_deleted is True
    assert row.deleted_at == first
    notes = db.scalars(select(ConversationMessage).where(ConversationMessage.request_id == req.id)).all()
    assert len(notes) == 1


def test_approval_race_loser_gets_already_decided(db, make_request, admin, owner_actor, notifier):
    req = make_request(requires_approval=True)

    with _other_session() as other:
        lifecycle.decide_approval(other, request_id=req.id, decision="approved", actor=owner_actor, notifier=notifier)

    assert req.approval_status == "pending-approval"  # stale copy

    with pytest.raises(PreconditionError) as e:
        lifecycle.decide_approval(db, request_id=req.id, decision="declined", actor=admin, notifier=notifier)
    assert e.value.code == "approval_already_decided"

    db.expire_all()
    row = db.get(MaintenanceRequest, req.id)
    assert row.approval_status == "approved"
    assert row.approved_by == owner_actor.email
    assert len(notifier.sent) == 1
