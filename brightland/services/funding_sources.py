# brightland/services/funding_sources.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import Actor
from ..clients.payment_gateway import PaymentGateway
from ..domain.audit import audit_write
from ..errors import GatewayError, PermissionDenied, ValidationError
from ..models import RentalApplication
from .ownership import must_get_application
from .validation import require_choice, require_text

log = logging.getLogger("brightland.billing")

HOLDER_TYPES = ("individual", "company")


def _owned(db: Session, application_id: int, actor: Actor) -> RentalApplication:
    row = must_get_application(db, application_id=application_id, for_update=True)
    if not actor.is_admin and row.user_email != actor.email:
        raise PermissionDenied("not your lease")
    return row


def _ensure_customer(row: RentalApplication, gateway: PaymentGateway) -> str:
    """Gateway customer for the lease, created on first use. The caller persists it."""
    if row.gateway_customer_ref:
        return row.gateway_customer_ref
    return gateway.create_customer(
        email=row.user_email,
        name=row.user_name,
        metadata={"application_id": str(row.id)},
    )


def _keep_new_customer(db: Session, row: RentalApplication, customer_ref: str, *, actor: Actor) -> None:
    """
    Called when a source attach fails. A customer created during this call is
    stored so the retry reuses it; the funding flags stay unset.
    """
    if row.gateway_customer_ref == customer_ref:
        return
    row.gateway_customer_ref = customer_ref
    audit_write(
        db,
        actor_email=actor.email,
        action="funding.customer_created",
        entity_type="RentalApplication",
        entity_id=row.id,
        after={"gateway_customer_ref": customer_ref},
    )
    db.commit()
    log.warning(
        "source attach failed, keeping gateway customer",
        extra={"application_id": row.id, "actor_email": actor.email},
    )


def add_checking_account(
    db: Session,
    *,
    application_id: int,
    actor: Actor,
    gateway: PaymentGateway,
    routing_number: str,
    account_number: str,
    account_holder_name: Optional[str] = None,
    account_holder_type: str = "individual",
) -> RentalApplication:
    """
    Registers a bank-debit source. Every gateway call happens before the
    funding fields are written, so a gateway error leaves them untouched.
    Only a newly created gateway customer is kept.
    """
    routing = require_text(routing_number, "routing_number")
    account = require_text(account_number, "account_number")
    if not routing.isdigit() or len(routing) != 9:
        raise ValidationError("routing_number", "must be 9 digits")
    if not account.isdigit():
        raise ValidationError("account_number", "must contain only digits")
    holder_type = require_choice(account_holder_type or "individual", "account_holder_type", HOLDER_TYPES)

    row = _owned(db, application_id, actor)
    before = row.model_dump()

    customer_ref = _ensure_customer(row, gateway)
    try:
        source_ref = gateway.create_bank_source(
            customer_ref=customer_ref,
            routing_number=routing,
            account_number=account,
            account_holder_name=(account_holder_name or "").strip() or row.user_name,
            account_holder_type=holder_type,
        )
    except GatewayError:
        _keep_new_customer(db, row, customer_ref, actor=actor)
        raise

    row.gateway_customer_ref = customer_ref
    row.ach_source_ref = source_ref
    row.has_checking_account = True

    audit_write(
        db,
        actor_email=actor.email,
        action="funding.add_checking_account",
        entity_type="RentalApplication",
        entity_id=row.id,
        before=before,
        # never log the account number
        after={"ach_source_ref": source_ref, "gateway_customer_ref": customer_ref, "last4": account[-4:]},
    )
    db.commit()
    db.refresh(row)

    log.info("checking account added", extra={"application_id": row.id, "actor_email": actor.email})
    return row


def add_credit_card(
    db: Session,
    *,
    application_id: int,
    actor: Actor,
    gateway: PaymentGateway,
    card_token: str,
) -> RentalApplication:
    token = require_text(card_token, "card_token")

    row = _owned(db, application_id, actor)
    before = row.model_dump()

    customer_ref = _ensure_customer(row, gateway)
    try:
        card_ref = gateway.attach_card(customer_ref=customer_ref, card_token=token)
        gateway.set_default_source(customer_ref=customer_ref, source_ref=card_ref)
    except GatewayError:
        _keep_new_customer(db, row, customer_ref, actor=actor)
        raise

    row.gateway_customer_ref = customer_ref
    row.card_source_ref = card_ref
    row.has_credit_card = True

    audit_write(
        db,
        actor_email=actor.email,
        action="funding.add_credit_card",
        entity_type="RentalApplication",
        entity_id=row.id,
        before=before,
        after={"card_source_ref": card_ref, "gateway_customer_ref": customer_ref},
    )
    db.commit()
    db.refresh(row)

    log.info("credit card added", extra={"application_id": row.id, "actor_email": actor.email})
    return row
