"""Embedding provider implementations.

Embeddings turn document and question text into 1024-wide vectors for the
similarity search behind question answering.

Two implementations of IEmbeddingProvider:
    1. VoyageEmbeddingProvider  -- voyage-3-large over httpx (default).
    2. OpenAIEmbeddingProvider  -- text-embedding-3-large, truncated to
       1024 dims via the ``dimensions`` request parameter.
"""

from zeb_ai.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from zeb_ai.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "VoyageEmbeddingProvider"]
