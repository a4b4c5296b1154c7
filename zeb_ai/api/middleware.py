"""API middleware: CORS, request logging and error handling.

Starlette middleware is a stack, last added runs first.  ``create_app``
adds ``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``, so:

    Client -> RequestLogging -> ErrorHandling -> route handler

and the request log sees the final status code even when ErrorHandling
replaced an exception with a structured JSON error.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from zeb_ai.api.schemas import ErrorResponse
from zeb_ai.utils.errors import (
    ConversationNotFoundError,
    DocumentNotFoundError,
    InputValidationError,
    ZebAIError,
)
from zeb_ai.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_GENERIC_DETAIL = "Unable to process the request right now. Please try again later."

# Statuses for errors whose message is safe to show the caller.
_CLIENT_ERRORS: dict[type[ZebAIError], int] = {
    InputValidationError: 400,
    DocumentNotFoundError: 404,
    ConversationNotFoundError: 404,
}


def status_for(exc: ZebAIError) -> int:
    for error_type, status in _CLIENT_ERRORS.items():
        if isinstance(exc, error_type):
            return status
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; defaults to ``["*"]`` for development."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request and bind a ``request_id`` into structlog contextvars."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=duration_ms,
            )
            structlog.contextvars.clear_contextvars()


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``ZebAIError`` subclasses into :class:`ErrorResponse` bodies.

    Validation and not-found errors carry their message to the client.
    Everything else becomes a 500 with a fixed detail string; provider
    messages and stack traces stay in the server log.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ZebAIError as exc:
            status = status_for(exc)
            log = _logger.warning if status < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status,
            )
            detail = exc.message if status < 500 else _GENERIC_DETAIL
            body = ErrorResponse(error=type(exc).__name__, detail=detail)
            return JSONResponse(status_code=status, content=body.model_dump())
