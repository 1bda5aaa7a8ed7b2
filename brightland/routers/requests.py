# brightland/routers/requests.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Actor, get_actor
from ..clients.notifications import Notifier, get_notifier
from ..config import settings
from ..db import get_db
from ..domain.grace_period import days_left
from ..models import MaintenanceRequest
from ..schemas import (
    ApprovalDecisionIn,
    CostUpdateIn,
    CostUpdateOut,
    MessageCreate,
    MessageOut,
    PaymentRequestOut,
    RequestCreate,
    RequestOut,
    RequestStatusUpdate,
)
from ..services import cost_invoicing, request_lifecycle as lifecycle

router = APIRouter(prefix="/requests", tags=["requests"])


def request_out(row: MaintenanceRequest, actor: Actor, *, now: datetime | None = None) -> RequestOut:
    out = RequestOut.model_validate(row)
    out.conversation_log = [MessageOut.model_validate(m) for m in lifecycle.conversation_for(row, actor)]
    if row.is_deleted and row.deleted_at is not None:
        out.days_left = days_left(row.deleted_at, now or datetime.utcnow(), grace_days=settings.grace_period_days)
    return out


@router.post("", response_model=RequestOut)
def submit_request(
    payload: RequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    row = lifecycle.submit_request(db, payload.model_dump(), actor=actor, notifier=notifier)
    return request_out(row, actor)


@router.get("", response_model=list[RequestOut])
def list_requests(
    status: str | None = Query(default=None),
    deleted: str = Query(default="exclude", description="exclude | include | only"),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    rows = lifecycle.list_requests(db, actor=actor, status=status, deleted=deleted, limit=limit)
    now = datetime.utcnow()
    return [request_out(r, actor, now=now) for r in rows]


@router.get("/{request_id}", response_model=RequestOut)
def get_request(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return request_out(lifecycle.get_request(db, request_id=request_id, actor=actor), actor)


@router.patch("/{request_id}/status", response_model=RequestOut)
def update_status(
    request_id: int,
    payload: RequestStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    row = lifecycle.update_status(
        db,
        request_id=request_id,
        actor=actor,
        notifier=notifier,
        status=payload.status,
        admin_notes=payload.admin_notes,
        finished_image_url=payload.finished_image_url,
    )
    return request_out(row, actor)


@router.put("/{request_id}/costs", response_model=CostUpdateOut)
def set_costs(
    request_id: int,
    payload: CostUpdateIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    sent = payload.model_dump(include=payload.model_fields_set)
    res = cost_invoicing.set_costs(db, request_id=request_id, actor=actor, notifier=notifier, **sent)
    return CostUpdateOut(
        request=request_out(res.request, actor),
        payment_request=PaymentRequestOut.model_validate(res.payment_request) if res.payment_request else None,
        invoice_created=res.created,
        reverted_from=res.reverted_from,
    )


@router.post("/{request_id}/approval", response_model=RequestOut)
def decide_approval(
    request_id: int,
    payload: ApprovalDecisionIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    row = lifecycle.decide_approval(
        db, request_id=request_id, decision=payload.decision, actor=actor, notifier=notifier
    )
    return request_out(row, actor)


@router.post("/{request_id}/messages", response_model=MessageOut)
def append_message(
    request_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    return lifecycle.append_message(
        db,
        request_id=request_id,
        text=payload.message,
        is_internal=payload.is_internal,
        actor=actor,
        notifier=notifier,
    )


@router.delete("/{request_id}", response_model=RequestOut)
def soft_delete(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return request_out(lifecycle.soft_delete(db, request_id=request_id, actor=actor), actor)


@router.post("/{request_id}/recover", response_model=RequestOut)
def recover(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return request_out(lifecycle.recover(db, request_id=request_id, actor=actor), actor)


@router.delete("/{request_id}/permanent")
def hard_delete(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    lifecycle.hard_delete(db, request_id=request_id, actor=actor)
    return {"ok": True, "id": request_id}
