"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-length vectors.
Implementations wrap Voyage AI (``voyage-3-large``) or an OpenAI-compatible
embeddings endpoint.  Callers never talk to a provider SDK directly; they go
through :class:`~zeb_ai.services.embedding_client.EmbeddingClient`, which adds
timeouts, retries and dimension checks on top of this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   VoyageEmbeddingProvider  -- voyage-3-large over httpx (default)
#   OpenAIEmbeddingProvider  -- text-embedding-3-large with dimensions=1024
# Located in: zeb_ai/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        zeb_ai.utils.errors.ProviderUnavailableError
            On auth, quota, network or server errors (and subclasses for
            timeouts and rate limits).
        zeb_ai.utils.errors.MalformedResponseError
            If the response body cannot be decoded into vectors.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality this provider is configured to produce."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"voyage-3-large"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured.

        Must not make a network call.
        """
