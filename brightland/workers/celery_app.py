# brightland/workers/celery_app.py
from __future__ import annotations

from celery import Celery

from ..config import settings

BROKER = settings.celery_broker_url or "redis://localhost:6379/0"
BACKEND = settings.celery_result_backend or "redis://localhost:6379/1"

celery_app = Celery(
    "brightland",
    broker=BROKER,
    backend=BACKEND,
    include=["brightland.workers.request_tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    timezone="UTC",
)

celery_app.conf.task_routes = {
    "brightland.workers.request_tasks.*": {"queue": "maintenance"},
}

celery_app.conf.beat_schedule = {
    "purge-deleted-requests": {
        "task": "brightland.workers.request_tasks.purge_deleted_requests_task",
        "schedule": float(settings.purge_schedule_hours) * 3600.0,
    },
    "refresh-rent-status": {
        "task": "brightland.workers.request_tasks.refresh_rent_status_task",
        "schedule": 24 * 3600.0,
    },
}
