# brightland/auth.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request

from .config import settings
from .errors import PermissionDenied


ROLES = ("admin", "user")


@dataclass(frozen=True)
class Actor:
    email: str
    name: str
    role: str  # admin | user
    user_type: Optional[str] = None  # tenant | property-owner | home-owner

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def require_admin_actor(actor: Actor, *, action: str) -> None:
    if not actor.is_admin:
        raise PermissionDenied(f"{action} requires an administrator")


def get_actor(request: Request) -> Actor:
    """
    Actor identity comes from headers set by the authenticating front end.

      dev    headers are trusted as sent (local / tests)
      proxy  headers are injected by an authenticating reverse proxy

    Authentication itself happens upstream; this only reads the result.
    """
    mode = (settings.auth_mode or "dev").strip().lower()
    if mode not in ("dev", "proxy"):
        raise HTTPException(status_code=401, detail="Not authenticated")

    email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
    if not email:
        raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_email}")

    name = (request.headers.get(settings.dev_header_user_name) or "").strip() or email.split("@")[0]
    role = (request.headers.get(settings.dev_header_user_role) or "user").strip().lower()
    if role not in ROLES:
        role = "user"
    user_type = (request.headers.get(settings.dev_header_user_type) or "").strip().lower() or None

    return Actor(email=email, name=name, role=role, user_type=user_type)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Requires role admin")
    return actor
