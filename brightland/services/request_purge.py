# brightland/services/request_purge.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.audit import SYSTEM_PURGE, audit_write
from ..domain.grace_period import purge_cutoff
from ..models import MaintenanceRequest

log = logging.getLogger("brightland.purge")


def purge_deleted_requests(
    db: Session,
    *,
    now: Optional[datetime] = None,
    grace_days: Optional[int] = None,
    dry_run: bool = False,
    limit: int = 500,
) -> dict[str, Any]:
    """
    Permanently removes requests whose soft-delete grace period has ended.

    Requests deleted less than grace_days ago, and requests recovered in the
    meantime, are never touched.
    """
    now = now or datetime.utcnow()
    days = int(grace_days if grace_days is not None else settings.grace_period_days)
    cutoff = purge_cutoff(now, grace_days=days)

    q = (
        select(MaintenanceRequest)
        .where(
            MaintenanceRequest.is_deleted.is_(True),
            MaintenanceRequest.deleted_at.is_not(None),
            MaintenanceRequest.deleted_at <= cutoff,
        )
        .order_by(MaintenanceRequest.deleted_at, MaintenanceRequest.id)
        .limit(int(limit))
    )
    rows = list(db.scalars(q).all())
    ids = [int(r.id) for r in rows]

    if dry_run:
        return {"ok": True, "dry_run": True, "cutoff": cutoff.isoformat(), "count": len(ids), "ids": ids}

    for r in rows:
        audit_write(
            db,
            actor_email=SYSTEM_PURGE,
            action="request.purge",
            entity_type="MaintenanceRequest",
            entity_id=r.id,
            before=r.model_dump(),
            after=None,
        )
        db.delete(r)
    db.commit()

    if ids:
        log.info("purged %d deleted requests (cutoff=%s)", len(ids), cutoff.isoformat())
    return {"ok": True, "dry_run": False, "cutoff": cutoff.isoformat(), "count": len(ids), "ids": ids}
