# brightland/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("brightland.http")

# health checks would drown everything else
QUIET_PATHS = ("/api/health",)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One access line per request. The JSON formatter adds request_id from the
    context var, so this must run inside RequestIDMiddleware.
    """

    def __init__(self, app, *, actor_header: str = "X-User-Email") -> None:
        super().__init__(app)
        self.actor_header = actor_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            path = request.url.path
            if status_code >= 400 or path not in QUIET_PATHS:
                level = logging.WARNING if status_code >= 500 else logging.INFO
                log.log(
                    level,
                    "%s %s -> %s",
                    request.method,
                    path,
                    status_code,
                    extra={
                        "method": request.method,
                        "path": path,
                        "status_code": status_code,
                        "latency_ms": int((time.perf_counter() - started) * 1000),
                        # header value only; handlers resolve the real actor
                        "actor_email": (request.headers.get(self.actor_header) or "").lower() or None,
                    },
                )
