"""Pydantic v2 data models for Zeb AI.

- **document** -- Document, ChunkSpan, RetrievalResult
- **conversation** -- Conversation, Message, MessageRole
- **results** -- success/failure results for embedding and generation
- **pipeline** -- ask/ingest phases and their result payloads
"""

from zeb_ai.models.conversation import Conversation, Message, MessageRole
from zeb_ai.models.document import ChunkSpan, Document, RetrievalResult, RetrievalSource
from zeb_ai.models.pipeline import AskPhase, AskResult, IngestionResult, IngestPhase, SourceReference
from zeb_ai.models.results import (
    EmbeddingFailure,
    EmbeddingSuccess,
    FailureReason,
    GenerationFailure,
    GenerationSuccess,
)

__all__ = [
    "AskPhase",
    "AskResult",
    "ChunkSpan",
    "Conversation",
    "Document",
    "EmbeddingFailure",
    "EmbeddingSuccess",
    "FailureReason",
    "GenerationFailure",
    "GenerationSuccess",
    "IngestPhase",
    "IngestionResult",
    "Message",
    "MessageRole",
    "RetrievalResult",
    "RetrievalSource",
    "SourceReference",
]
