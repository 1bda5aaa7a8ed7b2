# brightland/services/billing_enrollment.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..auth import Actor
from ..clients.payment_gateway import PaymentGateway
from ..domain.audit import audit_write
from ..domain.billing_schedule import BillingSchedule, plan_schedule
from ..domain.payment_status import CURRENT
from ..errors import GatewayError, PermissionDenied, PreconditionError
from ..models import RentalApplication
from .ownership import must_get_application
from .rental_applications import lease_snapshot

log = logging.getLogger("brightland.billing")


@dataclass(frozen=True)
class Enrollment:
    application: RentalApplication
    schedule: BillingSchedule
    subscription_ref: str


def check_preconditions(row: RentalApplication) -> None:
    """
    Ordered checklist; the first unmet item is the one reported.

    The last item is not a tenant-facing step: it catches a lease whose
    funding flags were set without a gateway identity behind them.
    """
    if row.auto_pay_enabled:
        raise PreconditionError("already_enrolled", "auto-pay is already enabled for this lease")
    if not row.has_checking_account:
        raise PreconditionError("checking_account_required", "add a checking account before enabling auto-pay")
    if not row.has_credit_card:
        raise PreconditionError("credit_card_required", "add a credit card before enabling auto-pay")
    if not row.security_deposit_paid:
        raise PreconditionError("security_deposit_required", "the security deposit must be paid first")
    if row.lease_start_date is None or row.lease_end_date is None:
        raise PreconditionError("lease_dates_required", "lease start and end dates must be set")
    if not row.monthly_rent or row.monthly_rent <= 0:
        raise PreconditionError("monthly_rent_required", "monthly rent must be greater than zero")
    if not row.gateway_customer_ref or not row.ach_source_ref:
        raise PreconditionError("gateway_source_required", "no bank source is registered with the payment gateway")


def enable_auto_pay(
    db: Session,
    *,
    application_id: int,
    actor: Actor,
    gateway: PaymentGateway,
    now: Optional[datetime] = None,
) -> Enrollment:
    """
    One-time enrollment of a lease into monthly rent billing.

    The auto_pay_enabled flag is claimed with a conditional UPDATE before the
    gateway is called, inside the same transaction. Of two concurrent callers
    only one claims it; the other sees already_enrolled. A gateway failure
    rolls the claim back so the lease is left exactly as it was.
    """
    now = now or datetime.utcnow()

    row = must_get_application(db, application_id=application_id)
    if not actor.is_admin and row.user_email != actor.email:
        raise PermissionDenied("not your lease")

    check_preconditions(row)
    before = row.model_dump()

    schedule = plan_schedule(
        lease_start=row.lease_start_date,  # type: ignore[arg-type]
        is_prorated=bool(row.is_prorated),
        now=now,
    )

    res = db.execute(
        update(RentalApplication)
        .where(RentalApplication.id == row.id, RentalApplication.auto_pay_enabled.is_(False))
        .values(auto_pay_enabled=True, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise PreconditionError("already_enrolled", "auto-pay is already enabled for this lease")

    try:
        plan = gateway.create_recurring_plan(
            customer_ref=str(row.gateway_customer_ref),
            source_ref=str(row.ach_source_ref),
            amount=float(row.monthly_rent or 0.0),
            interval="month",
            description=f"Monthly rent - {row.listing_name}",
            billing_anchor=schedule.billing_anchor,
            trial_end=schedule.trial_end,
            metadata={
                "application_id": str(row.id),
                "user_email": row.user_email,
                "lease_start_date": row.lease_start_date.isoformat() if row.lease_start_date else "",
            },
        )
    except GatewayError:
        db.rollback()
        log.warning("auto-pay enrollment failed at gateway", extra={"application_id": application_id})
        raise

    db.refresh(row)
    row.subscription_ref = plan.ref
    row.next_payment_date = schedule.next_payment_date
    row.rent_payment_status = CURRENT

    audit_write(
        db,
        actor_email=actor.email,
        action="billing.enable_auto_pay",
        entity_type="RentalApplication",
        entity_id=row.id,
        before=before,
        after={
            **row.model_dump(),
            "schedule": {
                "first_billing_date": schedule.first_billing_date.isoformat(),
                "immediate": schedule.immediate,
                "lease": lease_snapshot(row),
            },
        },
    )
    db.commit()
    db.refresh(row)

    log.info(
        "auto-pay enabled (%s) next=%s",
        "immediate" if schedule.immediate else "deferred",
        schedule.next_payment_date.isoformat(),
        extra={"application_id": row.id, "subscription_ref": plan.ref, "actor_email": actor.email},
    )
    return Enrollment(application=row, schedule=schedule, subscription_ref=plan.ref)
