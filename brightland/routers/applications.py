# brightland/routers/applications.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Actor, get_actor
from ..clients.notifications import Notifier, get_notifier
from ..clients.payment_gateway import PaymentGateway, get_gateway
from ..db import get_db
from ..domain.payment_status import project_rent_status
from ..models import RentalApplication
from ..schemas import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationOut,
    CheckingAccountIn,
    CreditCardIn,
    DepositIn,
    EnrollmentOut,
    PaymentOut,
    RentPaymentIn,
)
from ..services import billing_enrollment, deposits, funding_sources, rent_payments
from ..services import rental_applications as applications

router = APIRouter(prefix="/applications", tags=["applications"])


def application_out(row: RentalApplication, *, now: datetime | None = None) -> ApplicationOut:
    """Read model; rent standing is projected at read time and never written here."""
    out = ApplicationOut.model_validate(row)
    out.rent_payment_status = project_rent_status(row.next_payment_date, now or datetime.utcnow())
    return out


@router.post("", response_model=ApplicationOut)
def submit_application(payload: ApplicationCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return application_out(applications.submit_application(db, payload.model_dump(), actor=actor))


@router.get("", response_model=list[ApplicationOut])
def list_applications(
    status: str | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    now = datetime.utcnow()
    return [application_out(r, now=now) for r in applications.list_applications(db, actor=actor, status=status, limit=limit)]


@router.get("/{application_id}", response_model=ApplicationOut)
def get_application(application_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return application_out(applications.get_application(db, application_id=application_id, actor=actor))


@router.patch("/{application_id}/status", response_model=ApplicationOut)
def decide_application(
    application_id: int,
    payload: ApplicationDecision,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    row = applications.update_application_status(
        db,
        application_id=application_id,
        actor=actor,
        notifier=notifier,
        status=payload.status,
        monthly_rent=payload.monthly_rent,
        lease_start_date=payload.lease_start_date,
        lease_end_date=payload.lease_end_date,
        admin_notes=payload.admin_notes,
    )
    return application_out(row)


# -------------------- Funding sources / deposit --------------------

@router.post("/{application_id}/checking-account", response_model=ApplicationOut)
def add_checking_account(
    application_id: int,
    payload: CheckingAccountIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    gateway: PaymentGateway = Depends(get_gateway),
):
    row = funding_sources.add_checking_account(
        db,
        application_id=application_id,
        actor=actor,
        gateway=gateway,
        routing_number=payload.routing_number,
        account_number=payload.account_number,
        account_holder_name=payload.account_holder_name,
        account_holder_type=payload.account_holder_type,
    )
    return application_out(row)


@router.post("/{application_id}/credit-card", response_model=ApplicationOut)
def add_credit_card(
    application_id: int,
    payload: CreditCardIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    gateway: PaymentGateway = Depends(get_gateway),
):
    row = funding_sources.add_credit_card(
        db, application_id=application_id, actor=actor, gateway=gateway, card_token=payload.card_token
    )
    return application_out(row)


@router.post("/{application_id}/security-deposit", response_model=PaymentOut)
def charge_security_deposit(
    application_id: int,
    payload: DepositIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    gateway: PaymentGateway = Depends(get_gateway),
):
    return deposits.charge_security_deposit(
        db, application_id=application_id, amount=payload.amount, actor=actor, gateway=gateway
    )


@router.post("/{application_id}/security-deposit/manual", response_model=PaymentOut)
def mark_deposit_collected(
    application_id: int,
    payload: DepositIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return deposits.mark_deposit_collected(db, application_id=application_id, amount=payload.amount, actor=actor)


# -------------------- Auto-pay / rent --------------------

@router.post("/{application_id}/auto-pay", response_model=EnrollmentOut)
def enable_auto_pay(
    application_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    gateway: PaymentGateway = Depends(get_gateway),
):
    res = billing_enrollment.enable_auto_pay(db, application_id=application_id, actor=actor, gateway=gateway)
    return EnrollmentOut(
        application=application_out(res.application),
        subscription_ref=res.subscription_ref,
        first_billing_date=res.schedule.first_billing_date,
        immediate=res.schedule.immediate,
        next_payment_date=res.schedule.next_payment_date,
    )


@router.post("/{application_id}/payments", response_model=PaymentOut)
def record_rent_payment(
    application_id: int,
    payload: RentPaymentIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return rent_payments.record_rent_payment(
        db,
        application_id=application_id,
        amount=payload.amount,
        actor=actor,
        paid_on=payload.paid_on,
        gateway_ref=payload.gateway_ref,
        payment_method=payload.payment_method,
    )


@router.get("/{application_id}/payments", response_model=list[PaymentOut])
def list_payments(application_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return rent_payments.list_payments(db, application_id=application_id, actor=actor)
