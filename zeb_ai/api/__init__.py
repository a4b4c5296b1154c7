"""Zeb AI API layer -- routes, schemas and middleware."""

from zeb_ai.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from zeb_ai.api.routes import router
from zeb_ai.api.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    DocumentListResponse,
    ErrorResponse,
    HealthResponse,
    IngestResponse,
    IngestTextRequest,
)

__all__ = [
    "AskQuestionRequest",
    "AskQuestionResponse",
    "DocumentListResponse",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "IngestResponse",
    "IngestTextRequest",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
]
