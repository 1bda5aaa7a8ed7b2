# brightland/errors.py
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("brightland.api")


class BrightlandError(Exception):
    """Base for every error the engine raises on purpose."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return {"detail": self.message}


class ValidationError(BrightlandError):
    """Missing or malformed input. Carries the offending field."""

    status_code = 422

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def payload(self) -> dict[str, Any]:
        return {"detail": self.reason, "field": self.field}


class PreconditionError(BrightlandError):
    """
    The entity is not in a state that allows the operation.

    `code` is stable and names the failed precondition (e.g. "already_enrolled").
    """

    status_code = 409

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code

    def payload(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class NotFoundError(BrightlandError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDenied(BrightlandError):
    status_code = 403


class GatewayError(BrightlandError):
    """The payment gateway rejected or failed a critical-path call."""

    status_code = 502

    def __init__(self, operation: str, message: str, *, gateway_code: Optional[str] = None) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.gateway_code = gateway_code

    def payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {"detail": self.message, "operation": self.operation}
        if self.gateway_code:
            out["gateway_code"] = self.gateway_code
        return out


class NotificationError(BrightlandError):
    """Raised by notifiers; always swallowed by notify_best_effort."""

    status_code = 502


def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BrightlandError)
    async def brightland_error_handler(request: Request, exc: BrightlandError):
        payload = exc.payload()
        request_id = _get_request_id(request)
        if request_id:
            payload["request_id"] = request_id

        if isinstance(exc, GatewayError):
            logger.warning("gateway_error operation=%s message=%s", exc.operation, exc.message)

        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        request_id = _get_request_id(request)
        payload: dict = {"detail": exc.detail}
        if request_id:
            payload["request_id"] = request_id

        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = _get_request_id(request)
        payload: dict = {"detail": jsonable_encoder(exc.errors())}
        if request_id:
            payload["request_id"] = request_id

        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = _get_request_id(request)
        logger.exception("unhandled_exception request_id=%s", request_id)

        payload: dict = {"detail": "Internal Server Error"}
        if request_id:
            payload["request_id"] = request_id

        return JSONResponse(status_code=500, content=payload)
