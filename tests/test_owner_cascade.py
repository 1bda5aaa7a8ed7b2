# tests/test_owner_cascade.py
from __future__ import annotations

import pytest
from sqlalchemy import select

from brightland.errors import NotFoundError, PermissionDenied, PreconditionError
from brightland.models import OwnedProperty
from brightland.services.owners import add_property, create_owner, remove_owner, remove_property


def test_removing_owner_removes_its_properties(db, admin):
    owner = create_owner(db, {"name": "Maple Holdings", "email": "Billing@MapleHoldings.local"}, actor=admin)
    assert owner.email == "billing@mapleholdings.local"

    add_property(db, owner_id=owner.id, payload={"name": "Maple Court", "monthly_rent": 900}, actor=admin)
    add_property(db, owner_id=owner.id, payload={"name": "Birch Row"}, actor=admin)

    other = create_owner(db, {"name": "Oak LLC", "email": "oak@owners.local"}, actor=admin)
    add_property(db, owner_id=other.id, payload={"name": "Oak Terrace"}, actor=admin)

    assert remove_owner(db, owner_id=owner.id, actor=admin) == 2

    db.expire_all()
    names = [p.name for p in db.scalars(select(OwnedProperty)).all()]
    assert names == ["Oak Terrace"]


def test_duplicates_are_rejected(db, admin):
    owner = create_owner(db, {"name": "Maple Holdings", "email": "billing@mapleholdings.local"}, actor=admin)
    add_property(db, owner_id=owner.id, payload={"name": "Maple Court"}, actor=admin)

    with pytest.raises(PreconditionError) as e:
        create_owner(db, {"name": "Dup", "email": "billing@mapleholdings.local"}, actor=admin)
    assert e.value.code == "owner_exists"

    with pytest.raises(PreconditionError) as e:
        add_property(db, owner_id=owner.id, payload={"name": "Maple Court"}, actor=admin)
    assert e.value.code == "property_exists"


def test_remove_single_property(db, admin, owner_actor):
    owner = create_owner(db, {"name": "Maple Holdings", "email": "billing@mapleholdings.local"}, actor=admin)
    prop = add_property(db, owner_id=owner.id, payload={"name": "Maple Court"}, actor=admin)

    with pytest.raises(PermissionDenied):
        remove_property(db, owner_id=owner.id, property_id=prop.id, actor=owner_actor)

    remove_property(db, owner_id=owner.id, property_id=prop.id, actor=admin)
    assert db.scalars(select(OwnedProperty)).all() == []

    with pytest.raises(NotFoundError):
        remove_property(db, owner_id=owner.id, property_id=prop.id, actor=admin)
