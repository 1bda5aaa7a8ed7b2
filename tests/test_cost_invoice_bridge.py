# tests/test_cost_invoice_bridge.py
from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from brightland.errors import PermissionDenied, ValidationError
from brightland.models import AuditEvent, OwnedProperty, PaymentRequest, PropertyOwner
from brightland.services.cost_invoicing import set_costs
from brightland.services.payment_requests import update_payment_request


def _invoices(db):
    return db.scalars(select(PaymentRequest)).all()


def test_entering_bill_twice_yields_one_invoice(db, make_request, admin, notifier):
    req = make_request(status="finished")

    first = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=120, amount_to_bill=150)
    second = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=120, amount_to_bill=150)

    assert first.created is True
    assert second.created is False
    rows = _invoices(db)
    assert len(rows) == 1
    assert rows[0].amount == 150
    assert rows[0].status == "pending"
    assert first.payment_request.id == second.payment_request.id


def test_tenant_request_never_produces_invoice(db, make_request, admin, notifier):
    req = make_request(user_type="tenant")
    res = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=200)
    assert res.payment_request is None
    assert _invoices(db) == []
    assert res.request.amount_to_bill == 200
    assert notifier.sent == []


def test_missing_property_suppresses_invoice(db, make_request, admin, notifier):
    req = make_request(property_name=None)
    set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=200)
    assert _invoices(db) == []


def test_zero_or_absent_bill_leaves_existing_invoice_untouched(db, make_request, admin, notifier):
    req = make_request()
    set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=150)

    set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=0)
    set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=175)

    rows = _invoices(db)
    assert len(rows) == 1
    assert rows[0].amount == 150
    assert rows[0].actual_cost is None


def test_invalid_costs_are_rejected_without_changes(db, make_request, admin, notifier):
    req = make_request()

    with pytest.raises(ValidationError) as e:
        set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=-1, amount_to_bill=50)
    assert e.value.field == "actual_cost"

    with pytest.raises(ValidationError) as e:
        set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=float("nan"))
    assert e.value.field == "amount_to_bill"

    with pytest.raises(ValidationError):
        set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill="lots")

    with pytest.raises(ValidationError):
        set_costs(db, request_id=req.id, actor=admin, notifier=notifier)

    db.refresh(req)
    assert req.actual_cost is None
    assert req.amount_to_bill is None
    assert _invoices(db) == []


def test_cost_entry_is_admin_only(db, make_request, owner_actor, notifier):
    req = make_request()
    with pytest.raises(PermissionDenied):
        set_costs(db, request_id=req.id, actor=owner_actor, notifier=notifier, amount_to_bill=10)


def test_new_invoice_is_due_in_thirty_days(db, make_request, admin, notifier):
    req = make_request()
    now = datetime(2026, 10, 1, 9, 30)
    res = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=120, amount_to_bill=150, now=now)
    pr = res.payment_request
    assert pr.due_date == now + timedelta(days=30)
    assert pr.proposed_budget == 100.0
    assert pr.actual_cost == 120
    assert pr.created_by == admin.email


def test_rebilling_paid_invoice_reverts_to_pending_and_is_audited(db, make_request, admin, notifier):
    req = make_request()
    res = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=150)
    update_payment_request(db, payment_request_id=res.payment_request.id, actor=admin, status="paid", paid_amount=150)

    again = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=140, amount_to_bill=160)

    assert again.reverted_from == "paid"
    pr = again.payment_request
    assert pr.status == "pending"
    assert pr.amount == 160
    assert db.scalar(select(AuditEvent).where(AuditEvent.action == "payment_request.rebill")) is not None


def test_invoice_goes_to_resolved_owner_and_admin(db, make_request, admin, notifier):
    owner = PropertyOwner(name="Maple Holdings", email="billing@mapleholdings.local")
    owner.properties.append(OwnedProperty(name="Maple Court"))
    db.add(owner)
    db.commit()

    req = make_request(email="site-manager@mapleholdings.local")
    res = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, actual_cost=120, amount_to_bill=150)

    assert res.payment_request.property_owner_email == "billing@mapleholdings.local"
    assert res.payment_request.property_owner_name == "Maple Holdings"
    assert notifier.sent[-1]["to"] == ["billing@mapleholdings.local", admin.email]
    assert "$150.00" in notifier.sent[-1]["body"]


def test_notification_failure_does_not_fail_cost_update(db, make_request, admin, notifier):
    req = make_request()
    notifier.fail = True
    res = set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=150)
    assert res.payment_request is not None
    assert len(_invoices(db)) == 1


def test_invoice_email_escapes_request_text(db, make_request, admin, notifier):
    req = make_request(property_name="Maple <Court>")
    req.project_description = '<img src=x onerror="steal()">'
    db.commit()

    set_costs(db, request_id=req.id, actor=admin, notifier=notifier, amount_to_bill=150)

    body = notifier.sent[-1]["body"]
    assert "<img" not in body
    assert "&lt;img src=x onerror=&quot;steal()&quot;&gt;" in body
    assert "Maple &lt;Court&gt;" in body
