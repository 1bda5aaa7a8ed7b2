# brightland/services/deposits.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..clients.payment_gateway import PaymentGateway
from ..domain.audit import audit_write
from ..domain.proration import round_cents
from ..errors import GatewayError, PermissionDenied, PreconditionError
from ..models import Payment, RentalApplication
from .ownership import must_get_application
from .validation import require_positive_amount

log = logging.getLogger("brightland.billing")

CASH_PAYMENT_REF = "CASH_PAYMENT"


def _record(
    db: Session,
    row: RentalApplication,
    *,
    amount: float,
    ref: str,
    method: str,
    now: datetime,
    actor: Actor,
    action: str,
) -> Payment:
    before = row.model_dump()

    row.security_deposit_paid = True
    row.security_deposit_amount = amount
    row.security_deposit_date = now
    row.security_deposit_ref = ref

    payment = Payment(
        rental_application_id=row.id,
        user_email=row.user_email,
        property_name=row.listing_name,
        payment_type="security_deposit",
        amount=amount,
        status="paid",
        payment_method=method,
        gateway_ref=ref,
        due_date=now.date(),
        paid_date=now.date(),
        description=f"Security deposit - {row.listing_name}",
        created_at=now,
    )
    db.add(payment)
    db.flush()

    audit_write(
        db,
        actor_email=actor.email,
        action=action,
        entity_type="RentalApplication",
        entity_id=row.id,
        before=before,
        after={**row.model_dump(), "payment_id": payment.id},
    )
    return payment


def charge_security_deposit(
    db: Session,
    *,
    application_id: int,
    amount: Any,
    actor: Actor,
    gateway: PaymentGateway,
    now: Optional[datetime] = None,
) -> Payment:
    """Charges the deposit against the registered bank source, then records it."""
    value = round_cents(require_positive_amount(amount, "amount"))
    now = now or datetime.utcnow()

    row = must_get_application(db, application_id=application_id, for_update=True)
    if not actor.is_admin and row.user_email != actor.email:
        raise PermissionDenied("not your lease")
    if row.security_deposit_paid:
        raise PreconditionError("deposit_already_paid", "security deposit is already paid")
    if not row.gateway_customer_ref or not row.ach_source_ref:
        raise PreconditionError("checking_account_required", "add a checking account before paying the deposit")

    charge = gateway.create_charge(
        customer_ref=row.gateway_customer_ref,
        source_ref=row.ach_source_ref,
        amount=value,
        description=f"Security deposit - {row.listing_name}",
        metadata={"application_id": str(row.id), "payment_type": "security_deposit"},
    )
    if charge.status == "failed":
        raise GatewayError("create_charge", "charge was declined")

    payment = _record(
        db,
        row,
        amount=value,
        ref=charge.ref,
        method="ach",
        now=now,
        actor=actor,
        action="deposit.charge",
    )
    # ACH settles later; the deposit counts as paid once the charge is accepted
    if not charge.succeeded:
        payment.status = "pending"

    db.commit()
    db.refresh(payment)

    log.info(
        "security deposit charged %.2f",
        value,
        extra={"application_id": row.id, "actor_email": actor.email},
    )
    return payment


def mark_deposit_collected(
    db: Session,
    *,
    application_id: int,
    amount: Any,
    actor: Actor,
    now: Optional[datetime] = None,
) -> Payment:
    """Admin records a deposit received outside the gateway (cash/check)."""
    require_admin_actor(actor, action="manual deposit")
    value = round_cents(require_positive_amount(amount, "amount"))
    now = now or datetime.utcnow()

    row = must_get_application(db, application_id=application_id, for_update=True)
    if row.security_deposit_paid:
        raise PreconditionError("deposit_already_paid", "security deposit is already paid")

    payment = _record(
        db,
        row,
        amount=value,
        ref=CASH_PAYMENT_REF,
        method="cash",
        now=now,
        actor=actor,
        action="deposit.manual",
    )
    db.commit()
    db.refresh(payment)

    log.info("security deposit recorded manually %.2f", value, extra={"application_id": row.id})
    return payment
