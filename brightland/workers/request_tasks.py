# brightland/workers/request_tasks.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select

from ..db import SessionLocal
from ..models import RentalApplication
from ..services.rent_payments import refresh_rent_status
from ..services.request_purge import purge_deleted_requests
from .celery_app import celery_app

log = logging.getLogger("brightland.workers")


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    name="brightland.workers.request_tasks.purge_deleted_requests_task",
)
def purge_deleted_requests_task(self, dry_run: bool = False) -> dict:
    """
    Grace-period sweep. Safe to retry: a request already purged simply no
    longer matches the query.
    """
    db = SessionLocal()
    try:
        return purge_deleted_requests(db, dry_run=dry_run)
    except Exception as e:
        db.rollback()
        log.exception("purge sweep failed (attempt %s)", self.request.retries + 1)
        raise self.retry(exc=e)
    finally:
        db.close()


@celery_app.task(name="brightland.workers.request_tasks.refresh_rent_status_task")
def refresh_rent_status_task() -> dict:
    """Re-projects the stored rent standing label for every enrolled lease."""
    db = SessionLocal()
    now = datetime.utcnow()
    changed = 0
    try:
        rows = db.scalars(select(RentalApplication).where(RentalApplication.auto_pay_enabled.is_(True))).all()
        for row in rows:
            before = row.rent_payment_status
            if refresh_rent_status(db, row, now=now) != before:
                changed += 1
        return {"ok": True, "checked": len(rows), "changed": changed}
    finally:
        db.close()
