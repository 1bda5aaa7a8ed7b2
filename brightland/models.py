# brightland/models.py
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


REQUEST_STATUSES = ("pending", "working", "finished", "rejected")
REQUESTER_TYPES = ("tenant", "property-owner", "home-owner")
BILLABLE_REQUESTER_TYPES = ("property-owner", "home-owner")
APPROVAL_STATUSES = ("pending-approval", "approved", "declined")

PAYMENT_REQUEST_STATUSES = ("pending", "paid", "cancelled", "disputed")

APPLICATION_STATUSES = ("pending", "approved", "denied")
RENT_PAYMENT_STATUSES = ("current", "late", "paid_ahead")

PAYMENT_TYPES = ("rent", "security_deposit", "fee", "late_fee", "maintenance")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
PAYMENT_METHODS = ("ach", "card", "cash")


def _jsonable(v: Any) -> Any:
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    return v


class _SnapshotMixin:
    """model_dump() for audit before/after snapshots (column values only)."""

    def model_dump(self) -> dict[str, Any]:
        return {c.key: _jsonable(getattr(self, c.key)) for c in self.__table__.columns}  # type: ignore[attr-defined]


# -----------------------------
# Audit trail
# -----------------------------
class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    def after(self) -> dict[str, Any]:
        return json.loads(self.after_json) if self.after_json else {}


# -----------------------------
# Owners own their properties
# -----------------------------
class PropertyOwner(_SnapshotMixin, Base):
    __tablename__ = "property_owners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    properties: Mapped[List["OwnedProperty"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        order_by="OwnedProperty.id",
    )


class OwnedProperty(_SnapshotMixin, Base):
    __tablename__ = "owned_properties"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_owned_properties_owner_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("property_owners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    zip: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    monthly_rent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="available")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    owner: Mapped[PropertyOwner] = relationship(back_populates="properties")


# -----------------------------
# Maintenance requests
# -----------------------------
class MaintenanceRequest(_SnapshotMixin, Base):
    __tablename__ = "maintenance_requests"
    __table_args__ = (Index("ix_maintenance_requests_deleted", "is_deleted", "deleted_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    full_name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    property_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)
    project_description: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False, default="tenant")
    submitted_by: Mapped[str] = mapped_column(String(10), nullable=False, default="user")

    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approval_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    approval_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    admin_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    problem_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    finished_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    proposed_budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    actual_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    amount_to_bill: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    conversation_log: Mapped[List["ConversationMessage"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="ConversationMessage.id",
    )
    payment_request: Mapped[Optional["PaymentRequest"]] = relationship(
        back_populates="manager_request",
        cascade="all, delete-orphan",
        uselist=False,
    )


class ConversationMessage(Base):
    __tablename__ = "conversation_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )

    sender: Mapped[str] = mapped_column(String(10), nullable=False)  # admin|user
    sender_name: Mapped[str] = mapped_column(String(160), nullable=False)
    sender_email: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    request: Mapped[MaintenanceRequest] = relationship(back_populates="conversation_log")


class PaymentRequest(_SnapshotMixin, Base):
    """Invoice to a property owner for completed maintenance work."""

    __tablename__ = "payment_requests"
    __table_args__ = (
        UniqueConstraint("manager_request_id", name="uq_payment_requests_manager_request"),
        Index("ix_payment_requests_owner_status", "property_owner_email", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    manager_request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_requests.id", ondelete="CASCADE"), nullable=False
    )

    property_name: Mapped[str] = mapped_column(String(200), nullable=False)
    property_owner_email: Mapped[str] = mapped_column(String(200), nullable=False)
    property_owner_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    actual_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    proposed_budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paid_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paid_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    payment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    manager_request: Mapped[MaintenanceRequest] = relationship(back_populates="payment_request")


# -----------------------------
# Rental applications / leases
# -----------------------------
class RentalApplication(_SnapshotMixin, Base):
    __tablename__ = "rental_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    listing_name: Mapped[str] = mapped_column(String(200), nullable=False)
    property_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("owned_properties.id", ondelete="SET NULL"), nullable=True
    )
    user_email: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(160), nullable=False)
    user_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    admin_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Lease (set by admin on approval)
    monthly_rent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lease_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    lease_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    first_payment_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    first_payment_due: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_prorated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Gateway identity
    gateway_customer_ref: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    ach_source_ref: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    card_source_ref: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Funding checklist
    has_checking_account: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_credit_card: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    security_deposit_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    security_deposit_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    security_deposit_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    security_deposit_ref: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Recurring billing
    auto_pay_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    subscription_ref: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    next_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    rent_payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="current")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    payments: Mapped[List["Payment"]] = relationship(
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )


class Payment(_SnapshotMixin, Base):
    """Tenant-side money movement (rent, deposit, fees)."""

    __tablename__ = "payments"
    __table_args__ = (Index("ix_payments_user_status", "user_email", "status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rental_application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rental_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_email: Mapped[str] = mapped_column(String(200), nullable=False)
    property_name: Mapped[str] = mapped_column(String(200), nullable=False)

    payment_type: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    payment_method: Mapped[str] = mapped_column(String(10), nullable=False)
    gateway_ref: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    application: Mapped[RentalApplication] = relationship(back_populates="payments")
