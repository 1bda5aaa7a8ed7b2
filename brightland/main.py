# brightland/main.py
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .errors import register_exception_handlers
from .logging_config import configure_logging

from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.ops import router as ops_router
from .routers.requests import router as requests_router
from .routers.payment_requests import router as payment_requests_router
from .routers.applications import router as applications_router
from .routers.owners import router as owners_router

API_PREFIX = "/api"


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Brightland Request & Billing Engine",
        version=settings.app_version,
    )

    # Starlette runs the last-added middleware first: RequestID must wrap logging
    app.add_middleware(StructuredLoggingMiddleware, actor_header=settings.dev_header_user_email)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Ops
    app.include_router(ops_router, prefix=API_PREFIX)

    # Maintenance requests + invoices
    app.include_router(requests_router, prefix=API_PREFIX)
    app.include_router(payment_requests_router, prefix=API_PREFIX)

    # Leasing + rent billing
    app.include_router(applications_router, prefix=API_PREFIX)
    app.include_router(owners_router, prefix=API_PREFIX)

    return app


app = create_app()
