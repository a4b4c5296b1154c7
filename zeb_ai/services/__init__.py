"""Domain services sitting between the orchestrator and the providers.

    EmbeddingClient   -- validated embeddings with timeout and retry
    Retriever         -- vector search with strict lexical fallback
    AnswerGenerator   -- prompt construction and grounded generation
    IngestionService  -- normalize, chunk, embed and index documents
"""

from zeb_ai.services.answer_generator import AnswerGenerator
from zeb_ai.services.embedding_client import EmbeddingClient
from zeb_ai.services.ingestion import IngestionService, TextChunker
from zeb_ai.services.retriever import Retriever

__all__ = [
    "AnswerGenerator",
    "EmbeddingClient",
    "IngestionService",
    "Retriever",
    "TextChunker",
]
