# brightland/routers/ops.py
from __future__ import annotations

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin
from ..config import settings
from ..db import get_db
from ..domain.audit import recent_events
from ..schemas import AuditEventOut, HealthOut, PurgeOut
from ..services.request_purge import purge_deleted_requests

router = APIRouter(tags=["ops"])


@router.get("/health", response_model=HealthOut)
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return HealthOut(ok=True, env=settings.app_env, version=settings.app_version)


def require_cron_secret(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> None:
    token = ""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token or not hmac.compare_digest(token, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/ops/purge-deleted", response_model=PurgeOut, dependencies=[Depends(require_cron_secret)])
def purge_deleted(
    dry_run: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    return purge_deleted_requests(db, dry_run=dry_run)


@router.get("/audit", response_model=list[AuditEventOut])
def list_audit(
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None, description="action prefix, e.g. payment_request."),
    limit: int = Query(default=200, ge=1, le=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return recent_events(db, entity_type=entity_type, entity_id=entity_id, action_prefix=action, limit=limit)
