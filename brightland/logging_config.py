# brightland/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import settings
from .middleware.request_id import get_request_id

# record attributes copied into the JSON line when a call site passes them via extra=
STRUCTURED_FIELDS = (
    "actor_email",
    "request_pk",
    "application_id",
    "payment_request_id",
    "subscription_ref",
    # http access line
    "method",
    "path",
    "status_code",
    "latency_ms",
)

_NOISY = {
    "sqlalchemy.engine": "SQL_LOG_LEVEL",
    "httpx": "HTTPX_LOG_LEVEL",
    "stripe": "STRIPE_LOG_LEVEL",
}


class JsonFormatter(logging.Formatter):
    def __init__(self, *, env: str) -> None:
        super().__init__()
        self.env = env

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "env": self.env,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            line["request_id"] = rid

        for k in STRUCTURED_FIELDS:
            v = getattr(record, k, None)
            if v is not None:
                line[k] = v

        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    """Routes every logger through a single stdout JSON handler. Safe to call twice."""
    lvl = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(env=settings.app_env))
    root.addHandler(handler)

    for name, env_var in _NOISY.items():
        logging.getLogger(name).setLevel((os.getenv(env_var) or "WARNING").upper())
    # our own access line replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel("WARNING")
