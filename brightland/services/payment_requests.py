# brightland/services/payment_requests.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..domain.audit import audit_write
from ..domain.proration import round_cents
from ..models import PAYMENT_REQUEST_STATUSES, PaymentRequest
from .ownership import must_get_payment_request
from .validation import optional_amount, require_choice

log = logging.getLogger("brightland.invoicing")


def list_payment_requests(
    db: Session,
    *,
    actor: Actor,
    status: Optional[str] = None,
    owner_email: Optional[str] = None,
    limit: int = 200,
) -> list[PaymentRequest]:
    q = select(PaymentRequest)
    if status is not None:
        q = q.where(PaymentRequest.status == require_choice(status, "status", PAYMENT_REQUEST_STATUSES))

    # owners only ever see their own invoices
    if not actor.is_admin:
        owner_email = actor.email
    if owner_email:
        q = q.where(PaymentRequest.property_owner_email == owner_email.strip().lower())

    q = q.order_by(desc(PaymentRequest.created_at), desc(PaymentRequest.id)).limit(int(limit))
    return list(db.scalars(q).all())


def update_payment_request(
    db: Session,
    *,
    payment_request_id: int,
    actor: Actor,
    status: Optional[str] = None,
    paid_amount: Optional[float] = None,
    payment_method: Optional[str] = None,
    payment_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PaymentRequest:
    """Moving to paid stamps paid_date; leaving paid clears it."""
    require_admin_actor(actor, action="payment request update")

    new_status = require_choice(status, "status", PAYMENT_REQUEST_STATUSES) if status is not None else None
    amount = optional_amount(paid_amount, "paid_amount")
    now = now or datetime.utcnow()

    row = must_get_payment_request(db, payment_request_id=payment_request_id)
    before = row.model_dump()

    if new_status is not None and new_status != row.status:
        if new_status == "paid":
            row.paid_date = now
        elif row.status == "paid":
            row.paid_date = None
        row.status = new_status

    if amount is not None:
        row.paid_amount = round_cents(amount)
    if payment_method is not None:
        row.payment_method = payment_method.strip() or None
    if payment_notes is not None:
        row.payment_notes = payment_notes
    row.updated_at = now

    audit_write(
        db,
        actor_email=actor.email,
        action="payment_request.update",
        entity_type="PaymentRequest",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info("payment request %s", row.status, extra={"payment_request_id": row.id, "actor_email": actor.email})
    return row
