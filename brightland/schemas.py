# brightland/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# -------------------- Maintenance requests --------------------

class RequestCreate(BaseModel):
    full_name: str
    email: str
    phone: str
    address: str
    property_name: Optional[str] = None
    project_description: str
    message: str
    user_type: str = "tenant"
    requires_approval: bool = False
    proposed_budget: Optional[float] = None
    problem_image_url: Optional[str] = None


class RequestStatusUpdate(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None
    finished_image_url: Optional[str] = None


class CostUpdateIn(BaseModel):
    # only fields actually sent are applied; an explicit null clears the value
    actual_cost: Optional[float] = None
    amount_to_bill: Optional[float] = None


class ApprovalDecisionIn(BaseModel):
    decision: str  # approved | declined


class MessageCreate(BaseModel):
    message: str
    is_internal: bool = False


class MessageOut(BaseModel):
    id: int
    sender: str
    sender_name: str
    sender_email: str
    message: str
    is_internal: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RequestOut(BaseModel):
    id: int
    full_name: str
    email: str
    phone: str
    address: str
    property_name: Optional[str] = None
    project_description: str
    message: str

    status: str
    user_type: str
    submitted_by: str

    requires_approval: bool
    approval_status: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None

    admin_notes: str = ""
    problem_image_url: Optional[str] = None
    finished_image_url: Optional[str] = None

    is_deleted: bool
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None
    days_left: Optional[int] = None

    proposed_budget: Optional[float] = None
    actual_cost: Optional[float] = None
    amount_to_bill: Optional[float] = None

    created_at: datetime
    updated_at: datetime

    conversation_log: list[MessageOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


# -------------------- Payment requests --------------------

class PaymentRequestUpdate(BaseModel):
    status: Optional[str] = None
    paid_amount: Optional[float] = None
    payment_method: Optional[str] = None
    payment_notes: Optional[str] = None


class PaymentRequestOut(BaseModel):
    id: int
    manager_request_id: int
    property_name: str
    property_owner_email: str
    property_owner_name: Optional[str] = None
    description: str
    amount: float
    actual_cost: Optional[float] = None
    proposed_budget: Optional[float] = None
    status: str
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    paid_amount: Optional[float] = None
    payment_method: Optional[str] = None
    payment_notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CostUpdateOut(BaseModel):
    request: RequestOut
    payment_request: Optional[PaymentRequestOut] = None
    invoice_created: bool = False
    reverted_from: Optional[str] = None


# -------------------- Rental applications / billing --------------------

class ApplicationCreate(BaseModel):
    listing_name: str
    property_id: Optional[int] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    user_phone: Optional[str] = None


class ApplicationDecision(BaseModel):
    status: str
    monthly_rent: Optional[float] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    admin_notes: Optional[str] = None


class ApplicationOut(BaseModel):
    id: int
    listing_name: str
    property_id: Optional[int] = None
    user_email: str
    user_name: str
    user_phone: Optional[str] = None
    status: str
    admin_notes: str = ""

    monthly_rent: Optional[float] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    first_payment_amount: Optional[float] = None
    first_payment_due: Optional[date] = None
    is_prorated: bool = False

    has_checking_account: bool = False
    has_credit_card: bool = False
    security_deposit_paid: bool = False
    security_deposit_amount: Optional[float] = None
    security_deposit_date: Optional[datetime] = None

    auto_pay_enabled: bool = False
    subscription_ref: Optional[str] = None
    next_payment_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    rent_payment_status: str = "current"

    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CheckingAccountIn(BaseModel):
    routing_number: str
    account_number: str
    account_holder_name: Optional[str] = None
    account_holder_type: str = "individual"


class CreditCardIn(BaseModel):
    card_token: str


class DepositIn(BaseModel):
    amount: float


class RentPaymentIn(BaseModel):
    amount: float
    paid_on: Optional[date] = None
    gateway_ref: Optional[str] = None
    payment_method: str = "ach"


class PaymentOut(BaseModel):
    id: int
    rental_application_id: int
    user_email: str
    property_name: str
    payment_type: str
    amount: float
    status: str
    payment_method: str
    gateway_ref: Optional[str] = None
    due_date: date
    paid_date: Optional[date] = None
    description: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class EnrollmentOut(BaseModel):
    application: ApplicationOut
    subscription_ref: str
    first_billing_date: date
    immediate: bool
    next_payment_date: date


# -------------------- Owners --------------------

class OwnerCreate(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None


class OwnedPropertyCreate(BaseModel):
    name: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    monthly_rent: Optional[float] = None
    status: str = "available"


class OwnedPropertyOut(BaseModel):
    id: int
    owner_id: int
    name: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    monthly_rent: Optional[float] = None
    status: str
    model_config = ConfigDict(from_attributes=True)


class OwnerOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    properties: list[OwnedPropertyOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


# -------------------- Audit / ops --------------------

class AuditEventOut(BaseModel):
    id: int
    actor_email: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    before_json: Optional[str] = None
    after_json: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PurgeOut(BaseModel):
    ok: bool
    dry_run: bool
    cutoff: str
    count: int
    ids: list[int]


class HealthOut(BaseModel):
    ok: bool
    env: str
    version: str
    extra: dict[str, Any] = Field(default_factory=dict)
