# brightland/routers/owners.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Actor, get_actor, require_admin
from ..db import get_db
from ..schemas import OwnedPropertyCreate, OwnedPropertyOut, OwnerCreate, OwnerOut
from ..services import owners

router = APIRouter(prefix="/owners", tags=["owners"])


@router.get("", response_model=list[OwnerOut])
def list_owners(db: Session = Depends(get_db), actor: Actor = Depends(require_admin)):
    return owners.list_owners(db)


@router.post("", response_model=OwnerOut)
def create_owner(payload: OwnerCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return owners.create_owner(db, payload.model_dump(), actor=actor)


@router.post("/{owner_id}/properties", response_model=OwnedPropertyOut)
def add_property(
    owner_id: int,
    payload: OwnedPropertyCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return owners.add_property(db, owner_id=owner_id, payload=payload.model_dump(), actor=actor)


@router.delete("/{owner_id}/properties/{property_id}")
def remove_property(owner_id: int, property_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    owners.remove_property(db, owner_id=owner_id, property_id=property_id, actor=actor)
    return {"ok": True}


@router.delete("/{owner_id}")
def remove_owner(owner_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    removed = owners.remove_owner(db, owner_id=owner_id, actor=actor)
    return {"ok": True, "properties_removed": removed}
