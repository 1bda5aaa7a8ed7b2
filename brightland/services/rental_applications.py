# brightland/services/rental_applications.py
from __future__ import annotations

import html
import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..clients.notifications import Notifier, notify_best_effort
from ..domain.audit import audit_write
from ..domain.proration import compute_first_payment, round_cents
from ..errors import PermissionDenied, PreconditionError, ValidationError
from ..models import APPLICATION_STATUSES, RentalApplication
from .ownership import must_get_application
from .validation import as_date, require_choice, require_positive_amount, require_text

log = logging.getLogger("brightland.leasing")

LEASE_FIELDS = ("monthly_rent", "lease_start_date", "lease_end_date")


def submit_application(db: Session, payload: dict[str, Any], *, actor: Actor) -> RentalApplication:
    row = RentalApplication(
        listing_name=require_text(payload.get("listing_name"), "listing_name"),
        property_id=payload.get("property_id"),
        user_email=require_text(payload.get("user_email") or actor.email, "user_email").lower(),
        user_name=require_text(payload.get("user_name") or actor.name, "user_name"),
        user_phone=(payload.get("user_phone") or "").strip() or None,
        status="pending",
        admin_notes="",
    )
    db.add(row)
    db.flush()
    audit_write(
        db,
        actor_email=actor.email,
        action="application.submit",
        entity_type="RentalApplication",
        entity_id=row.id,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)
    log.info("application submitted", extra={"application_id": row.id, "actor_email": actor.email})
    return row


def list_applications(
    db: Session, *, actor: Actor, status: Optional[str] = None, limit: int = 200
) -> list[RentalApplication]:
    q = select(RentalApplication)
    if status is not None:
        q = q.where(RentalApplication.status == require_choice(status, "status", APPLICATION_STATUSES))
    if not actor.is_admin:
        q = q.where(RentalApplication.user_email == actor.email)
    q = q.order_by(desc(RentalApplication.id)).limit(int(limit))
    return list(db.scalars(q).all())


def get_application(db: Session, *, application_id: int, actor: Actor) -> RentalApplication:
    row = must_get_application(db, application_id=application_id)
    if not actor.is_admin and row.user_email != actor.email:
        raise PermissionDenied("not your application")
    return row


def update_application_status(
    db: Session,
    *,
    application_id: int,
    actor: Actor,
    notifier: Notifier,
    status: str,
    monthly_rent: Optional[float] = None,
    lease_start_date: Optional[date | str] = None,
    lease_end_date: Optional[date | str] = None,
    admin_notes: Optional[str] = None,
) -> RentalApplication:
    """
    Admin decision on an application. Approval may carry the lease terms;
    with rent and a start date present the first payment is prorated here,
    once, and stored on the lease.
    """
    require_admin_actor(actor, action="application decision")
    new_status = require_choice(status, "status", APPLICATION_STATUSES)

    rent = require_positive_amount(monthly_rent, "monthly_rent") if monthly_rent is not None else None
    start = as_date(lease_start_date, "lease_start_date")
    end = as_date(lease_end_date, "lease_end_date")

    row = must_get_application(db, application_id=application_id, for_update=True)
    before = row.model_dump()

    eff_rent = rent if rent is not None else row.monthly_rent
    eff_start = start or row.lease_start_date
    eff_end = end or row.lease_end_date
    if eff_start and eff_end and eff_end < eff_start:
        raise ValidationError("lease_end_date", "must not be before lease_start_date")

    lease_changed = (
        (rent is not None and rent != row.monthly_rent)
        or (start is not None and start != row.lease_start_date)
        or (end is not None and end != row.lease_end_date)
    )
    if row.auto_pay_enabled and (lease_changed or new_status != "approved"):
        raise PreconditionError("lease_locked", "lease is enrolled in auto-pay; terms can no longer change")

    previous = row.status
    row.status = new_status
    if admin_notes is not None:
        row.admin_notes = admin_notes
    if rent is not None:
        row.monthly_rent = round_cents(rent)
    if start is not None:
        row.lease_start_date = start
    if end is not None:
        row.lease_end_date = end

    if new_status == "approved" and eff_rent and eff_start:
        first = compute_first_payment(monthly_rent=float(row.monthly_rent or eff_rent), lease_start=eff_start)
        row.first_payment_amount = first.amount
        row.is_prorated = first.is_prorated
        row.first_payment_due = first.due

    audit_write(
        db,
        actor_email=actor.email,
        action=f"application.{new_status}",
        entity_type="RentalApplication",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info(
        "application %s -> %s",
        previous,
        new_status,
        extra={"application_id": row.id, "actor_email": actor.email},
    )

    if new_status != previous:
        notify_best_effort(notifier, [row.user_email], f"Your application for {row.listing_name}", _decision_body(row))
    return row


def _decision_body(row: RentalApplication) -> str:
    if row.status != "approved":
        return (
            f"<p>Hi {html.escape(row.user_name)},</p>"
            f"<p>Your application for {html.escape(row.listing_name)} is now <b>{row.status}</b>.</p>"
        )

    name, listing = html.escape(row.user_name), html.escape(row.listing_name)
    parts = [f"<p>Hi {name},</p><p>Your application for {listing} was approved.</p>"]
    if row.monthly_rent:
        parts.append(f"<p><b>Monthly rent:</b> ${row.monthly_rent:,.2f}</p>")
    if row.lease_start_date:
        parts.append(f"<p><b>Lease start:</b> {row.lease_start_date:%B %d, %Y}</p>")
    if row.first_payment_amount is not None:
        label = "prorated first payment" if row.is_prorated else "first payment"
        parts.append(f"<p><b>{label.capitalize()}:</b> ${row.first_payment_amount:,.2f}</p>")
    return "".join(parts)


def lease_snapshot(row: RentalApplication) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k in LEASE_FIELDS + ("first_payment_amount", "is_prorated", "first_payment_due"):
        v = getattr(row, k)
        out[k] = v.isoformat() if isinstance(v, (date, datetime)) else v
    return out
