"""Embedding client: the only path from the pipelines to an embedding provider.

Wraps an :class:`IEmbeddingProvider` with a per-attempt timeout, the shared
:class:`RetryPolicy` and vector validation, and returns an explicit
:data:`EmbeddingResult` instead of raising.  Callers branch on
``result.kind``; a failed embedding is an ordinary value that switches the
retriever to lexical search or leaves a chunk lexical-only.
"""

from __future__ import annotations

import math

import structlog

from zeb_ai.interfaces.embedding_provider import IEmbeddingProvider
from zeb_ai.models.results import (
    EmbeddingFailure,
    EmbeddingResult,
    EmbeddingSuccess,
    FailureReason,
    reason_for,
)
from zeb_ai.utils.concurrency import with_timeout
from zeb_ai.utils.errors import ZebAIError
from zeb_ai.utils.retry import RetryPolicy

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingClient:
    """Turns text into a validated fixed-length vector, or a typed failure.

    Parameters
    ----------
    provider:
        The embedding adapter, or ``None`` when no provider is configured.
    dimension:
        Required vector length (the index contract, 1024 by default).
    timeout:
        Seconds allowed per attempt; ``0`` disables the deadline.
    retry:
        Backoff policy for retryable provider errors.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider | None,
        dimension: int = 1024,
        timeout: float = 10.0,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._provider = provider
        self._dimension = dimension
        self._timeout = timeout
        self._retry = retry or RetryPolicy()

    @property
    def dimension(self) -> int:
        return self._dimension

    def is_available(self) -> bool:
        return self._provider is not None and self._provider.is_available()

    def get_provider_name(self) -> str | None:
        return self._provider.get_provider_name() if self._provider else None

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed one text.  Never raises for provider-side problems."""
        if self._provider is None or not self._provider.is_available():
            return EmbeddingFailure(
                reason=FailureReason.NOT_CONFIGURED,
                message="No embedding provider is configured",
                provider=self.get_provider_name(),
            )

        provider = self._provider
        provider_name = provider.get_provider_name()

        async def _attempt() -> list[float]:
            return await with_timeout(
                provider.embed_single(text),
                self._timeout,
                provider_name=provider_name,
                operation="embed",
            )

        try:
            vector = await self._retry.run(_attempt, operation="embed", provider_name=provider_name)
        except ZebAIError as exc:
            reason = reason_for(exc)
            logger.warning(
                "embedding_failed",
                provider=provider_name,
                reason=reason.value,
                error=str(exc),
            )
            return EmbeddingFailure(reason=reason, message=exc.message, provider=provider_name)

        return self._validate(vector, provider_name)

    def _validate(self, vector: list[float], provider_name: str) -> EmbeddingResult:
        if len(vector) != self._dimension:
            logger.warning(
                "embedding_dimension_mismatch",
                provider=provider_name,
                expected=self._dimension,
                actual=len(vector),
            )
            return EmbeddingFailure(
                reason=FailureReason.DIMENSION_MISMATCH,
                message=f"Expected {self._dimension} dimensions, got {len(vector)}",
                provider=provider_name,
            )
        if not all(math.isfinite(value) for value in vector):
            return EmbeddingFailure(
                reason=FailureReason.MALFORMED_RESPONSE,
                message="Embedding contains non-finite values",
                provider=provider_name,
            )
        return EmbeddingSuccess(vector=list(vector), provider=provider_name)
