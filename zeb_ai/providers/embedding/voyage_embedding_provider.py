"""Voyage AI embedding provider adapter.

Talks to ``POST {voyage_base_url}/embeddings`` over an injected
``httpx.AsyncClient`` and implements :class:`IEmbeddingProvider`.  The
response body is validated with pydantic at this boundary so nothing
untyped leaves the adapter.
"""

from __future__ import annotations

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from zeb_ai.config.settings import Settings
from zeb_ai.interfaces.embedding_provider import IEmbeddingProvider
from zeb_ai.providers.http_status import raise_for_provider_status, translate_transport_error
from zeb_ai.utils.errors import MalformedResponseError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_VOYAGE_BATCH_LIMIT = 128
_DEFAULT_TIMEOUT = 15.0


class _VoyageEmbedding(BaseModel):
    embedding: list[float]
    index: int = 0


class _VoyageUsage(BaseModel):
    total_tokens: int | None = None


class _VoyageResponse(BaseModel):
    data: list[_VoyageEmbedding]
    model: str | None = None
    usage: _VoyageUsage | None = None


class VoyageEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by the Voyage AI REST API.

    Uses ``voyage-3-large`` at 1024 dimensions by default.  The HTTP client
    is injected for testability and connection pooling; when none is given
    the provider creates (and owns) its own.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = settings.voyage_api_key
        self._model = settings.voyage_model
        self._dimension = settings.embedding_dimension
        self._url = settings.voyage_base_url.rstrip("/") + "/embeddings"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_DEFAULT_TIMEOUT))

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Splits into batches of 128 (the Voyage per-request input cap) and
        reorders each batch by the ``index`` field Voyage returns.
        """
        if not texts:
            return []
        if not self._api_key:
            raise ProviderUnavailableError(
                message="VOYAGE_API_KEY is not configured",
                provider_name=self.get_provider_name(),
                retryable=False,
            )

        vectors: list[list[float]] = []
        for start in range(0, len(texts), _VOYAGE_BATCH_LIMIT):
            batch = texts[start : start + _VOYAGE_BATCH_LIMIT]
            vectors.extend(await self._embed_batch(batch))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        payload = {
            "input": batch,
            "model": self._model,
            "output_dimension": self._dimension,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = await self._client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise translate_transport_error(exc, self.get_provider_name()) from exc

        raise_for_provider_status(response, self.get_provider_name())

        try:
            parsed = _VoyageResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MalformedResponseError(
                message=f"Unexpected embeddings payload: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if len(parsed.data) != len(batch):
            raise MalformedResponseError(
                message=f"Expected {len(batch)} embeddings, got {len(parsed.data)}",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "voyage_embedding_batch",
            model=self._model,
            batch_size=len(batch),
            tokens=parsed.usage.total_tokens if parsed.usage else None,
        )
        ordered = sorted(parsed.data, key=lambda item: item.index)
        return [item.embedding for item in ordered]
