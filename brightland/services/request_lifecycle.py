# brightland/services/request_lifecycle.py
from __future__ import annotations

import html
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..clients.notifications import Notifier, notify_best_effort
from ..config import settings
from ..domain.audit import audit_write
from ..domain.grace_period import purge_date
from ..errors import PermissionDenied, PreconditionError
from ..models import (
    APPROVAL_STATUSES,
    REQUEST_STATUSES,
    REQUESTER_TYPES,
    ConversationMessage,
    MaintenanceRequest,
)
from .ownership import find_owner_for_property, must_get_request
from .validation import optional_amount, require_choice, require_text

log = logging.getLogger("brightland.requests")

DECISIONS = tuple(s for s in APPROVAL_STATUSES if s != "pending-approval")
OWNER_TYPES = ("property-owner", "home-owner")


def _log_entry(
    row: MaintenanceRequest,
    *,
    actor: Actor,
    text: str,
    is_internal: bool,
    now: Optional[datetime] = None,
) -> ConversationMessage:
    msg = ConversationMessage(
        sender="admin" if actor.is_admin else "user",
        sender_name=actor.name,
        sender_email=actor.email,
        message=text,
        is_internal=is_internal,
        created_at=now or datetime.utcnow(),
    )
    row.conversation_log.append(msg)
    return msg


# -----------------------------
# Submission / listing
# -----------------------------
def submit_request(db: Session, payload: dict[str, Any], *, actor: Actor, notifier: Notifier) -> MaintenanceRequest:
    full_name = require_text(payload.get("full_name"), "full_name")
    email = require_text(payload.get("email"), "email").lower()
    phone = require_text(payload.get("phone"), "phone")
    address = require_text(payload.get("address"), "address")
    project_description = require_text(payload.get("project_description"), "project_description")
    message = require_text(payload.get("message"), "message")
    user_type = require_choice(payload.get("user_type") or "tenant", "user_type", REQUESTER_TYPES)
    proposed_budget = optional_amount(payload.get("proposed_budget"), "proposed_budget")

    requires_approval = bool(payload.get("requires_approval"))

    row = MaintenanceRequest(
        full_name=full_name,
        email=email,
        phone=phone,
        address=address,
        property_name=(payload.get("property_name") or "").strip() or None,
        project_description=project_description,
        message=message,
        status="pending",
        user_type=user_type,
        submitted_by="admin" if actor.is_admin else "user",
        requires_approval=requires_approval,
        approval_status="pending-approval" if requires_approval else None,
        problem_image_url=payload.get("problem_image_url") or None,
        proposed_budget=proposed_budget,
        admin_notes="",
    )
    db.add(row)
    db.flush()

    audit_write(
        db,
        actor_email=actor.email,
        action="request.submit",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info("request submitted", extra={"request_pk": row.id, "actor_email": actor.email})

    notify_best_effort(
        notifier,
        [settings.admin_notify_email],
        f"New maintenance request: {row.project_description}",
        (
            f"<p>{html.escape(row.full_name)} ({html.escape(row.email)}) submitted a {row.user_type} request.</p>"
            f"<p><b>Address:</b> {html.escape(row.address)}</p>"
            f"<p>{html.escape(row.message or '')}</p>"
        ),
    )
    return row


def list_requests(
    db: Session,
    *,
    actor: Actor,
    status: Optional[str] = None,
    deleted: str = "exclude",
    limit: int = 200,
) -> list[MaintenanceRequest]:
    """
    deleted: exclude | include | only

    Non-admins see only the requests they submitted.
    """
    q = select(MaintenanceRequest)

    if status is not None:
        q = q.where(MaintenanceRequest.status == require_choice(status, "status", REQUEST_STATUSES))

    mode = require_choice(deleted, "deleted", ("exclude", "include", "only"))
    if mode == "exclude":
        q = q.where(MaintenanceRequest.is_deleted.is_(False))
    elif mode == "only":
        q = q.where(MaintenanceRequest.is_deleted.is_(True))

    if not actor.is_admin:
        q = q.where(MaintenanceRequest.email == actor.email)

    q = q.order_by(desc(MaintenanceRequest.created_at), desc(MaintenanceRequest.id)).limit(int(limit))
    return list(db.scalars(q).all())


def get_request(db: Session, *, request_id: int, actor: Actor) -> MaintenanceRequest:
    row = must_get_request(db, request_id=request_id)
    if not actor.is_admin and row.email != actor.email:
        raise PermissionDenied("not your request")
    return row


# -----------------------------
# Status
# -----------------------------
def update_status(
    db: Session,
    *,
    request_id: int,
    actor: Actor,
    notifier: Notifier,
    status: Optional[str] = None,
    admin_notes: Optional[str] = None,
    finished_image_url: Optional[str] = None,
) -> MaintenanceRequest:
    """
    Admin edit of status / notes / completion photo.

    Any status may follow any other. Nothing is appended to the conversation
    log here; that is always an explicit append_message call.
    """
    require_admin_actor(actor, action="status update")
    new_status = require_choice(status, "status", REQUEST_STATUSES) if status is not None else None

    row = must_get_request(db, request_id=request_id)
    before = row.model_dump()
    previous = row.status

    if new_status is not None:
        row.status = new_status
    if admin_notes is not None:
        row.admin_notes = admin_notes
    if finished_image_url is not None:
        row.finished_image_url = finished_image_url or None

    audit_write(
        db,
        actor_email=actor.email,
        action="request.update_status",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    if new_status is not None and new_status != previous:
        log.info(
            "request status %s -> %s",
            previous,
            new_status,
            extra={"request_pk": row.id, "actor_email": actor.email},
        )
        notify_best_effort(
            notifier,
            [row.email],
            f"Your request is now {new_status}: {row.project_description}",
            (
                f"<p>Hi {html.escape(row.full_name)},</p>"
                f"<p>The status of your request at {html.escape(row.address)} changed from "
                f"<b>{previous}</b> to <b>{new_status}</b>.</p>"
                + (f"<p>{html.escape(row.admin_notes)}</p>" if row.admin_notes else "")
            ),
        )
    return row


# -----------------------------
# Soft delete / recover / hard delete
# -----------------------------
def soft_delete(db: Session, *, request_id: int, actor: Actor, now: Optional[datetime] = None) -> MaintenanceRequest:
    require_admin_actor(actor, action="delete")
    now = now or datetime.utcnow()

    row = must_get_request(db, request_id=request_id)
    before = row.model_dump()

    res = db.execute(
        update(MaintenanceRequest)
        .where(MaintenanceRequest.id == row.id, MaintenanceRequest.is_deleted.is_(False))
        .values(is_deleted=True, deleted_at=now, deleted_by=actor.email, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise PreconditionError("already_deleted", "request is already deleted")

    db.refresh(row)

    removal = purge_date(now, grace_days=settings.grace_period_days)
    _log_entry(
        row,
        actor=actor,
        text=(
            f"Request deleted by {actor.name}. It will be permanently removed on "
            f"{removal:%B %d, %Y} unless recovered."
        ),
        is_internal=True,
        now=now,
    )
    audit_write(
        db,
        actor_email=actor.email,
        action="request.soft_delete",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info("request soft-deleted", extra={"request_pk": row.id, "actor_email": actor.email})
    return row


def recover(db: Session, *, request_id: int, actor: Actor, now: Optional[datetime] = None) -> MaintenanceRequest:
    require_admin_actor(actor, action="recover")
    now = now or datetime.utcnow()

    row = must_get_request(db, request_id=request_id)
    before = row.model_dump()

    res = db.execute(
        update(MaintenanceRequest)
        .where(MaintenanceRequest.id == row.id, MaintenanceRequest.is_deleted.is_(True))
        .values(is_deleted=False, deleted_at=None, deleted_by=None, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise PreconditionError("not_deleted", "request is not deleted")

    db.refresh(row)

    _log_entry(row, actor=actor, text=f"Request recovered by {actor.name}.", is_internal=True, now=now)
    audit_write(
        db,
        actor_email=actor.email,
        action="request.recover",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info("request recovered", extra={"request_pk": row.id, "actor_email": actor.email})
    return row


def hard_delete(db: Session, *, request_id: int, actor: Actor) -> None:
    """Explicit bypass of the grace period. Removes the log and any invoice with it."""
    require_admin_actor(actor, action="permanent delete")

    row = must_get_request(db, request_id=request_id)
    audit_write(
        db,
        actor_email=actor.email,
        action="request.hard_delete",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=row.model_dump(),
        after=None,
    )
    db.delete(row)
    db.commit()

    log.warning("request permanently deleted", extra={"request_pk": request_id, "actor_email": actor.email})


# -----------------------------
# Approval gate
# -----------------------------
def _may_decide(db: Session, row: MaintenanceRequest, actor: Actor) -> bool:
    if actor.is_admin:
        return True
    owner = find_owner_for_property(db, property_name=row.property_name)
    if owner is not None and owner.email.lower() == actor.email.lower():
        return True
    return row.user_type in OWNER_TYPES and row.email == actor.email.lower()


def decide_approval(
    db: Session,
    *,
    request_id: int,
    decision: str,
    actor: Actor,
    notifier: Notifier,
    now: Optional[datetime] = None,
) -> MaintenanceRequest:
    """
    pending-approval -> approved | declined, exactly once.

    A second decision is rejected, never silently accepted.
    """
    decision = require_choice(decision, "decision", DECISIONS)
    now = now or datetime.utcnow()

    row = must_get_request(db, request_id=request_id)
    if not _may_decide(db, row, actor):
        raise PermissionDenied("only the property owner or an administrator may decide approval")
    before = row.model_dump()

    if not row.requires_approval:
        raise PreconditionError("approval_not_required", "request does not require approval")

    res = db.execute(
        update(MaintenanceRequest)
        .where(
            MaintenanceRequest.id == row.id,
            MaintenanceRequest.requires_approval.is_(True),
            MaintenanceRequest.approval_status == "pending-approval",
        )
        .values(approval_status=decision, approved_by=actor.email, approval_date=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        db.refresh(row)
        raise PreconditionError(
            "approval_already_decided",
            f"approval already decided ({row.approval_status})",
        )

    db.refresh(row)
    audit_write(
        db,
        actor_email=actor.email,
        action=f"request.approval_{decision}",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info("approval %s", decision, extra={"request_pk": row.id, "actor_email": actor.email})

    notify_best_effort(
        notifier,
        [settings.admin_notify_email],
        f"Request {decision}: {row.project_description}",
        (
            f"<p>{html.escape(actor.name)} ({html.escape(actor.email)}) {decision} "
            f"the request at {html.escape(row.address)}.</p>"
            + (f"<p><b>Proposed budget:</b> ${row.proposed_budget:,.2f}</p>" if row.proposed_budget is not None else "")
        ),
    )
    return row


# -----------------------------
# Conversation
# -----------------------------
def append_message(
    db: Session,
    *,
    request_id: int,
    text: str,
    actor: Actor,
    notifier: Notifier,
    is_internal: bool = False,
) -> ConversationMessage:
    """
    The append is committed before any notification is attempted; a failed
    notification never removes the entry.
    """
    body = require_text(text, "message")
    if is_internal and not actor.is_admin:
        raise PermissionDenied("only administrators may post internal notes")

    row = must_get_request(db, request_id=request_id)
    if not actor.is_admin and row.email != actor.email:
        raise PermissionDenied("not your request")

    msg = _log_entry(row, actor=actor, text=body, is_internal=bool(is_internal))
    db.flush()
    audit_write(
        db,
        actor_email=actor.email,
        action="request.message",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        after={"message_id": msg.id, "is_internal": msg.is_internal, "sender": msg.sender},
    )
    db.commit()
    db.refresh(msg)

    if not msg.is_internal:
        # admin replies go to the requester; requester replies go to the admin mailbox
        to = row.email if actor.is_admin else settings.admin_notify_email
        notify_best_effort(
            notifier,
            [to],
            f"New message on request: {row.project_description}",
            f"<p><b>{html.escape(actor.name)}</b> wrote:</p><p>{html.escape(body)}</p>",
        )
    return msg


def conversation_for(row: MaintenanceRequest, actor: Actor) -> list[ConversationMessage]:
    if actor.is_admin:
        return list(row.conversation_log)
    return [m for m in row.conversation_log if not m.is_internal]
