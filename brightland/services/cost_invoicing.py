# brightland/services/cost_invoicing.py
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..clients.notifications import Notifier, notify_best_effort
from ..config import settings
from ..domain.audit import audit_write
from ..domain.proration import round_cents
from ..errors import ValidationError
from ..models import BILLABLE_REQUESTER_TYPES, MaintenanceRequest, PaymentRequest
from .ownership import find_owner_for_property, must_get_request
from .validation import optional_amount

log = logging.getLogger("brightland.invoicing")

_UNSET: Any = object()


@dataclass(frozen=True)
class CostUpdate:
    request: MaintenanceRequest
    payment_request: Optional[PaymentRequest]
    created: bool
    reverted_from: Optional[str] = None  # previous invoice status when a non-pending invoice was re-billed


def is_billable(row: MaintenanceRequest, amount_to_bill: Optional[float]) -> bool:
    return (
        amount_to_bill is not None
        and amount_to_bill > 0
        and row.user_type in BILLABLE_REQUESTER_TYPES
        and bool((row.property_name or "").strip())
    )


def set_costs(
    db: Session,
    *,
    request_id: int,
    actor: Actor,
    notifier: Notifier,
    actual_cost: Any = _UNSET,
    amount_to_bill: Any = _UNSET,
    now: Optional[datetime] = None,
) -> CostUpdate:
    """
    Record admin-entered costs and keep the request's single invoice in step.

    The request row stays locked until commit, so cost edits on one request
    serialize and the invoice upsert can never produce a second record.
    Without a positive amount_to_bill nothing happens to any invoice, existing
    or not.
    """
    require_admin_actor(actor, action="cost entry")

    if actual_cost is _UNSET and amount_to_bill is _UNSET:
        raise ValidationError("amount_to_bill", "actual_cost or amount_to_bill is required")

    actual = optional_amount(actual_cost, "actual_cost") if actual_cost is not _UNSET else _UNSET
    to_bill = optional_amount(amount_to_bill, "amount_to_bill") if amount_to_bill is not _UNSET else _UNSET

    now = now or datetime.utcnow()
    row = must_get_request(db, request_id=request_id, for_update=True)
    before = row.model_dump()

    if actual is not _UNSET:
        row.actual_cost = round_cents(actual) if actual is not None else None
    if to_bill is not _UNSET:
        row.amount_to_bill = round_cents(to_bill) if to_bill is not None else None

    audit_write(
        db,
        actor_email=actor.email,
        action="request.set_costs",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )

    effective_bill = row.amount_to_bill if to_bill is not _UNSET else None
    if not is_billable(row, effective_bill):
        db.commit()
        db.refresh(row)
        return CostUpdate(request=row, payment_request=None, created=False)

    owner = find_owner_for_property(db, property_name=row.property_name)
    pr = db.scalar(select(PaymentRequest).where(PaymentRequest.manager_request_id == row.id))
    created = pr is None
    reverted_from: Optional[str] = None

    if pr is None:
        pr = PaymentRequest(
            manager_request_id=row.id,
            property_name=row.property_name or "",
            property_owner_email=owner.email if owner else row.email,
            property_owner_name=owner.name if owner else row.full_name,
            description=row.project_description,
            amount=float(row.amount_to_bill or 0.0),
            actual_cost=row.actual_cost,
            proposed_budget=row.proposed_budget,
            status="pending",
            due_date=now + timedelta(days=int(settings.invoice_due_days)),
            created_by=actor.email,
            created_at=now,
            updated_at=now,
        )
        db.add(pr)
        db.flush()
        audit_write(
            db,
            actor_email=actor.email,
            action="payment_request.create",
            entity_type="PaymentRequest",
            entity_id=pr.id,
            after=pr.model_dump(),
        )
    else:
        pr_before = pr.model_dump()
        if pr.status != "pending":
            reverted_from = pr.status
            log.warning(
                "re-billing payment request in status %s; reverting to pending",
                pr.status,
                extra={"request_pk": row.id, "payment_request_id": pr.id, "actor_email": actor.email},
            )
        pr.amount = float(row.amount_to_bill or 0.0)
        pr.actual_cost = row.actual_cost
        pr.proposed_budget = row.proposed_budget
        pr.status = "pending"
        pr.updated_at = now
        audit_write(
            db,
            actor_email=actor.email,
            action="payment_request.rebill" if reverted_from else "payment_request.update",
            entity_type="PaymentRequest",
            entity_id=pr.id,
            before=pr_before,
            after=pr.model_dump(),
        )

    db.commit()
    db.refresh(row)
    db.refresh(pr)

    log.info(
        "invoice %s amount=%.2f",
        "created" if created else "updated",
        pr.amount,
        extra={"request_pk": row.id, "payment_request_id": pr.id},
    )

    notify_best_effort(
        notifier,
        [pr.property_owner_email, actor.email],
        f"Payment request: {pr.property_name} - ${pr.amount:,.2f}",
        _invoice_body(pr),
    )
    return CostUpdate(request=row, payment_request=pr, created=created, reverted_from=reverted_from)


def _money(v: Optional[float]) -> str:
    return f"${v:,.2f}" if v is not None else "n/a"


def _invoice_body(pr: PaymentRequest) -> str:
    due = pr.due_date.strftime("%B %d, %Y") if pr.due_date else "n/a"
    return (
        f"<p>Hello {html.escape(pr.property_owner_name or '')},</p>"
        f"<p>A payment request has been issued for work at <b>{html.escape(pr.property_name or '')}</b>.</p>"
        "<table>"
        f"<tr><td>Description</td><td>{html.escape(pr.description or '')}</td></tr>"
        f"<tr><td>Proposed budget</td><td>{_money(pr.proposed_budget)}</td></tr>"
        f"<tr><td>Actual cost</td><td>{_money(pr.actual_cost)}</td></tr>"
        f"<tr><td>Amount due</td><td><b>{_money(pr.amount)}</b></td></tr>"
        f"<tr><td>Due date</td><td>{due}</td></tr>"
        "</table>"
    )
