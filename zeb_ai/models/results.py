"""Explicit success/failure results returned at the provider boundary.

Provider payloads are decoded and validated inside the adapters; services
then hand one of these results to their callers instead of raising, so an
embedding or generation failure is an ordinary value the orchestrator can
branch on.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from zeb_ai.utils.errors import (
    ContentBlockedError,
    MalformedResponseError,
    ProviderTimeoutError,
    RateLimitError,
    ZebAIError,
)


class FailureReason(str, Enum):  # noqa: UP042
    NOT_CONFIGURED = "not_configured"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    MALFORMED_RESPONSE = "malformed_response"
    CONTENT_BLOCKED = "content_blocked"
    DIMENSION_MISMATCH = "dimension_mismatch"


def reason_for(exc: ZebAIError) -> FailureReason:
    """Map a provider exception onto a :class:`FailureReason`."""
    # Subclasses before their bases.
    if isinstance(exc, ProviderTimeoutError):
        return FailureReason.TIMEOUT
    if isinstance(exc, RateLimitError):
        return FailureReason.RATE_LIMITED
    if isinstance(exc, ContentBlockedError):
        return FailureReason.CONTENT_BLOCKED
    if isinstance(exc, MalformedResponseError):
        return FailureReason.MALFORMED_RESPONSE
    return FailureReason.UNAVAILABLE


# ---------------------------------------------------------------------------
# Embedding
# ---------------------------------------------------------------------------
class EmbeddingSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    vector: list[float]
    provider: str


class EmbeddingFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    reason: FailureReason
    message: str
    provider: str | None = None


EmbeddingResult = Annotated[Union[EmbeddingSuccess, EmbeddingFailure], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------
class GenerationSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    text: str
    provider: str


class GenerationFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    reason: FailureReason
    message: str
    provider: str | None = None


GenerationResult = Annotated[Union[GenerationSuccess, GenerationFailure], Field(discriminator="kind")]
