# brightland/routers/payment_requests.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Actor, get_actor
from ..db import get_db
from ..schemas import PaymentRequestOut, PaymentRequestUpdate
from ..services.payment_requests import list_payment_requests, update_payment_request

router = APIRouter(prefix="/payment-requests", tags=["payment-requests"])


@router.get("", response_model=list[PaymentRequestOut])
def list_rows(
    status: str | None = Query(default=None),
    owner_email: str | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return list_payment_requests(db, actor=actor, status=status, owner_email=owner_email, limit=limit)


@router.patch("/{payment_request_id}", response_model=PaymentRequestOut)
def update_row(
    payment_request_id: int,
    payload: PaymentRequestUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return update_payment_request(
        db,
        payment_request_id=payment_request_id,
        actor=actor,
        status=payload.status,
        paid_amount=payload.paid_amount,
        payment_method=payload.payment_method,
        payment_notes=payload.payment_notes,
    )
