# brightland/services/rent_payments.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..domain.audit import audit_write
from ..domain.billing_schedule import add_months
from ..domain.payment_status import project_rent_status
from ..domain.proration import round_cents
from ..errors import PermissionDenied
from ..models import PAYMENT_METHODS, Payment, RentalApplication
from .ownership import must_get_application
from .validation import as_date, require_choice, require_positive_amount

log = logging.getLogger("brightland.billing")


def belongs_to_cycle(paid_on: date, next_payment_date: Optional[date]) -> bool:
    """A payment settles the cycle ending at next_payment_date if it lands within the month before it, or later."""
    if next_payment_date is None:
        return False
    return paid_on >= add_months(next_payment_date, -1)


def record_rent_payment(
    db: Session,
    *,
    application_id: int,
    amount: Any,
    actor: Actor,
    paid_on: Any = None,
    gateway_ref: Optional[str] = None,
    payment_method: str = "ach",
    now: Optional[datetime] = None,
) -> Payment:
    require_admin_actor(actor, action="rent payment entry")
    value = round_cents(require_positive_amount(amount, "amount"))
    method = require_choice(payment_method, "payment_method", PAYMENT_METHODS)
    now = now or datetime.utcnow()
    paid = as_date(paid_on, "paid_on") or now.date()

    row = must_get_application(db, application_id=application_id, for_update=True)
    before = row.model_dump()

    due = row.next_payment_date or paid
    payment = Payment(
        rental_application_id=row.id,
        user_email=row.user_email,
        property_name=row.listing_name,
        payment_type="rent",
        amount=value,
        status="paid",
        payment_method=method,
        gateway_ref=gateway_ref,
        due_date=due,
        paid_date=paid,
        description=f"Rent - {row.listing_name} ({due:%B %Y})",
        created_at=now,
    )
    db.add(payment)

    if row.last_payment_date is None or paid > row.last_payment_date:
        row.last_payment_date = paid
    if belongs_to_cycle(paid, row.next_payment_date):
        row.next_payment_date = add_months(row.next_payment_date, 1)  # type: ignore[arg-type]
    row.rent_payment_status = project_rent_status(row.next_payment_date, now)

    db.flush()
    audit_write(
        db,
        actor_email=actor.email,
        action="rent.payment_recorded",
        entity_type="RentalApplication",
        entity_id=row.id,
        before=before,
        after={**row.model_dump(), "payment_id": payment.id},
    )
    db.commit()
    db.refresh(payment)

    log.info(
        "rent payment %.2f recorded, status=%s",
        value,
        row.rent_payment_status,
        extra={"application_id": row.id, "actor_email": actor.email},
    )
    return payment


def refresh_rent_status(db: Session, row: RentalApplication, *, now: Optional[datetime] = None) -> str:
    """Re-projects the stored label; commits only when it changed."""
    status = project_rent_status(row.next_payment_date, now or datetime.utcnow())
    if status != row.rent_payment_status:
        row.rent_payment_status = status
        db.commit()
        db.refresh(row)
    return status


def list_payments(db: Session, *, application_id: int, actor: Actor) -> list[Payment]:
    row = must_get_application(db, application_id=application_id)
    if not actor.is_admin and row.user_email != actor.email:
        raise PermissionDenied("not your lease")
    q = select(Payment).where(Payment.rental_application_id == row.id).order_by(desc(Payment.id))
    return list(db.scalars(q).all())
