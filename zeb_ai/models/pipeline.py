"""Pipeline state and result models for the ask and ingest flows.

Each request walks a small state machine.  The orchestrator records every
phase it enters in ``phases`` so callers (and tests) can see exactly which
path a request took, e.g. an embedding outage shows up as
``EMBEDDING -> ERROR_RECOVERED -> RETRIEVING``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from zeb_ai.models.document import RetrievalResult


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------
class AskPhase(str, Enum):  # noqa: UP042
    """States of one "ask" request.

    RECEIVED -> EMBEDDING -> RETRIEVING -> GENERATING -> PERSISTING -> COMPLETED
    EMBEDDING -> ERROR_RECOVERED -> RETRIEVING      (embedding failed)
    GENERATING -> FAILED                             (unrecoverable)
    """

    RECEIVED = "RECEIVED"
    EMBEDDING = "EMBEDDING"
    ERROR_RECOVERED = "ERROR_RECOVERED"
    RETRIEVING = "RETRIEVING"
    GENERATING = "GENERATING"
    PERSISTING = "PERSISTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class IngestPhase(str, Enum):  # noqa: UP042
    """States of one ingestion: RECEIVED -> NORMALIZED -> CHUNKED|SINGLE -> EMBEDDING_EACH -> INDEXED."""

    RECEIVED = "RECEIVED"
    NORMALIZED = "NORMALIZED"
    CHUNKED = "CHUNKED"
    SINGLE = "SINGLE"
    EMBEDDING_EACH = "EMBEDDING_EACH"
    INDEXED = "INDEXED"


# ---------------------------------------------------------------------------
# Ask
# ---------------------------------------------------------------------------
class SourceReference(BaseModel):
    """A retrieved document as reported back to the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: str
    similarity: float | None = None
    is_chunk: bool = False
    chunk_index: int | None = None
    parent_id: str | None = None

    @classmethod
    def from_result(cls, result: RetrievalResult) -> "SourceReference":
        doc = result.document
        return cls(
            id=doc.id,
            title=doc.title,
            category=doc.category,
            similarity=result.score,
            is_chunk=doc.is_chunk,
            chunk_index=doc.chunk_index,
            parent_id=doc.parent_id,
        )


class AskResult(BaseModel):
    """Outcome of :meth:`RAGOrchestrator.ask`."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    sources: list[SourceReference] = Field(default_factory=list)
    conversation_id: str | None = Field(
        default=None,
        description="None only when conversation persistence failed for a new thread.",
    )
    degraded: bool = Field(default=False, description="True when the answer is the fallback text.")
    phases: list[AskPhase] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of one ingested document."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    title: str
    category: str
    chunks_created: int = Field(default=0, ge=0, description="0 when stored as a single unit.")
    embedded: int = Field(default=0, ge=0, description="Stored units that received an embedding.")
    embedding_failures: int = Field(default=0, ge=0)
    phases: list[IngestPhase] = Field(default_factory=list)
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
