# brightland/domain/audit.py
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..models import AuditEvent

SYSTEM_PURGE = "system:purge"


def _dumps(v: Optional[dict[str, Any]]) -> Optional[str]:
    if v is None:
        return None
    return json.dumps(v, sort_keys=True, default=str)


def audit_write(
    db: Session,
    *,
    actor_email: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Any,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    """
    Adds an audit row to the current transaction and never commits. The row
    lands with the mutation it describes, or not at all.

    actor_email is the acting user, or a "system:*" tag for scheduled work.
    """
    row = AuditEvent(
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_json=_dumps(before),
        after_json=_dumps(after),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    return row


def recent_events(
    db: Session,
    *,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    action_prefix: Optional[str] = None,
    limit: int = 200,
) -> list[AuditEvent]:
    q = select(AuditEvent)
    if entity_type:
        q = q.where(AuditEvent.entity_type == entity_type)
    if entity_id is not None and entity_id != "":
        q = q.where(AuditEvent.entity_id == str(entity_id))
    if action_prefix:
        q = q.where(AuditEvent.action.startswith(action_prefix))
    return list(db.scalars(q.order_by(desc(AuditEvent.id)).limit(int(limit))).all())
