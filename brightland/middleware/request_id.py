# brightland/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"

# ids forwarded by a proxy are echoed back into headers and logs
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")

request_id_ctx: ContextVar[Optional[str]] = ContextVar("brightland_request_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


def accept_or_mint(incoming: Optional[str]) -> str:
    rid = (incoming or "").strip()
    if _SAFE_ID.match(rid):
        return rid
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id (request.state, log context, response header)."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = accept_or_mint(request.headers.get(HEADER))
        request.state.request_id = rid
        token = request_id_ctx.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[HEADER] = rid
        return response
