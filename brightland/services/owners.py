# brightland/services/owners.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin_actor
from ..domain.audit import audit_write
from ..errors import NotFoundError, PreconditionError
from ..models import OwnedProperty, PropertyOwner
from .ownership import must_get_owner
from .validation import optional_amount, require_text

log = logging.getLogger("brightland.owners")


def create_owner(db: Session, payload: dict[str, Any], *, actor: Actor) -> PropertyOwner:
    require_admin_actor(actor, action="owner creation")
    email = require_text(payload.get("email"), "email").lower()
    if db.scalar(select(PropertyOwner).where(PropertyOwner.email == email)):
        raise PreconditionError("owner_exists", f"an owner with email {email} already exists")

    row = PropertyOwner(
        name=require_text(payload.get("name"), "name"),
        email=email,
        phone=(payload.get("phone") or "").strip() or None,
    )
    db.add(row)
    db.flush()
    audit_write(
        db,
        actor_email=actor.email,
        action="owner.create",
        entity_type="PropertyOwner",
        entity_id=row.id,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)
    return row


def add_property(db: Session, *, owner_id: int, payload: dict[str, Any], actor: Actor) -> OwnedProperty:
    require_admin_actor(actor, action="property creation")
    owner = must_get_owner(db, owner_id=owner_id)
    name = require_text(payload.get("name"), "name")
    if any(p.name == name for p in owner.properties):
        raise PreconditionError("property_exists", f"{owner.name} already owns a property named {name}")

    prop = OwnedProperty(
        name=name,
        street=payload.get("street"),
        city=payload.get("city"),
        state=payload.get("state"),
        zip=payload.get("zip"),
        monthly_rent=optional_amount(payload.get("monthly_rent"), "monthly_rent"),
        status=(payload.get("status") or "available"),
    )
    owner.properties.append(prop)
    db.flush()
    audit_write(
        db,
        actor_email=actor.email,
        action="owner.add_property",
        entity_type="PropertyOwner",
        entity_id=owner.id,
        after=prop.model_dump(),
    )
    db.commit()
    db.refresh(prop)
    return prop


def remove_property(db: Session, *, owner_id: int, property_id: int, actor: Actor) -> None:
    require_admin_actor(actor, action="property removal")
    owner = must_get_owner(db, owner_id=owner_id)
    prop = next((p for p in owner.properties if p.id == property_id), None)
    if prop is None:
        raise NotFoundError("property", property_id)

    audit_write(
        db,
        actor_email=actor.email,
        action="owner.remove_property",
        entity_type="PropertyOwner",
        entity_id=owner.id,
        before=prop.model_dump(),
    )
    owner.properties.remove(prop)
    db.commit()


def remove_owner(db: Session, *, owner_id: int, actor: Actor) -> int:
    """Deletes the owner and, with it, every property it owns. Returns how many properties went."""
    require_admin_actor(actor, action="owner removal")
    owner = must_get_owner(db, owner_id=owner_id)
    n = len(owner.properties)

    audit_write(
        db,
        actor_email=actor.email,
        action="owner.delete",
        entity_type="PropertyOwner",
        entity_id=owner.id,
        before={**owner.model_dump(), "properties": [p.model_dump() for p in owner.properties]},
    )
    db.delete(owner)
    db.commit()

    log.info("owner %s removed with %d properties", owner_id, n)
    return n


def list_owners(db: Session) -> list[PropertyOwner]:
    return list(db.scalars(select(PropertyOwner).order_by(PropertyOwner.name, PropertyOwner.id)).all())
