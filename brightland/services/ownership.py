# brightland/services/ownership.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import MaintenanceRequest, PaymentRequest, PropertyOwner, RentalApplication, OwnedProperty


def must_get_request(db: Session, *, request_id: int, for_update: bool = False) -> MaintenanceRequest:
    q = select(MaintenanceRequest).where(MaintenanceRequest.id == request_id)
    if for_update:
        q = q.with_for_update()
    row = db.scalar(q)
    if not row:
        raise NotFoundError("maintenance request", request_id)
    return row


def must_get_payment_request(db: Session, *, payment_request_id: int) -> PaymentRequest:
    row = db.scalar(select(PaymentRequest).where(PaymentRequest.id == payment_request_id))
    if not row:
        raise NotFoundError("payment request", payment_request_id)
    return row


def must_get_application(db: Session, *, application_id: int, for_update: bool = False) -> RentalApplication:
    q = select(RentalApplication).where(RentalApplication.id == application_id)
    if for_update:
        q = q.with_for_update()
    row = db.scalar(q)
    if not row:
        raise NotFoundError("rental application", application_id)
    return row


def must_get_owner(db: Session, *, owner_id: int) -> PropertyOwner:
    row = db.scalar(select(PropertyOwner).where(PropertyOwner.id == owner_id))
    if not row:
        raise NotFoundError("property owner", owner_id)
    return row


def find_owner_for_property(db: Session, *, property_name: str | None) -> PropertyOwner | None:
    """Owner whose portfolio holds a property with this exact name, if any."""
    name = (property_name or "").strip()
    if not name:
        return None
    return db.scalar(
        select(PropertyOwner)
        .join(OwnedProperty, OwnedProperty.owner_id == PropertyOwner.id)
        .where(OwnedProperty.name == name)
        .order_by(PropertyOwner.id)
        .limit(1)
    )
