"""Knowledge-base data models: documents, chunks and retrieval hits.

A :class:`Document` is the unit stored in the index.  Long uploads are split
into chunk documents that point back to their parent; short uploads are
stored as one embedded document.  All models are frozen -- metadata edits go
through the store, which writes a new row version.

Embedding invariant, checked on construction:

- a parent that was split (``chunk_count > 0``) holds no embedding;
- an unsplit document holds at most one embedding;
- a chunk carries ``parent_id`` and ``chunk_index``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_CATEGORY = "other"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def new_document_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Document -- a stored unit of knowledge (parent or chunk).
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """A document or chunk in the campus-safety knowledge base."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_document_id, description="Unique document identifier.")
    title: str = Field(description="Display title; chunks use '<title> (Chunk i/N)'.")
    content: str = Field(description="Normalized body text.")
    category: str = Field(default=DEFAULT_CATEGORY, description="Free-form category tag.")
    tags: list[str] = Field(default_factory=list)
    owner_id: str = Field(description="Identifier of the uploading user.")
    is_public: bool = Field(default=True, description="Only public documents are retrievable.")
    embedding: list[float] | None = Field(
        default=None,
        description="Embedding vector, or None when absent (split parent or failed embedding).",
    )
    is_chunk: bool = False
    parent_id: str | None = Field(default=None, description="Parent document id for chunks.")
    chunk_index: int | None = Field(default=None, ge=0, description="0-based position among siblings.")
    chunk_count: int | None = Field(
        default=None,
        ge=0,
        description="Number of chunks the parent was split into (also set on each chunk).",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_chunking_invariants(self) -> "Document":
        if self.is_chunk:
            if self.parent_id is None or self.chunk_index is None:
                raise ValueError("chunk documents require parent_id and chunk_index")
        elif self.chunk_count and self.embedding:
            raise ValueError("a split parent document must not hold an embedding")
        if self.embedding is not None and len(self.embedding) == 0:
            raise ValueError("embedding must be None or a non-empty vector")
        return self

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    @property
    def is_split_parent(self) -> bool:
        return not self.is_chunk and bool(self.chunk_count)


# ---------------------------------------------------------------------------
# ChunkSpan -- one window produced by the chunker.
# ---------------------------------------------------------------------------
class ChunkSpan(BaseModel):
    """A window over the normalized text of a document.

    ``overlap`` is the number of leading characters shared with the previous
    span (0 for the first), so ``text[overlap:]`` is the part unique to this
    span and concatenating those parts rebuilds the source text.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    start: int = Field(ge=0, description="Offset of text[0] in the source.")
    index: int = Field(ge=0, description="0-based sequence index.")
    overlap: int = Field(default=0, ge=0)

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def unique_text(self) -> str:
        return self.text[self.overlap:]


# ---------------------------------------------------------------------------
# RetrievalResult -- a transient search hit.
# ---------------------------------------------------------------------------
class RetrievalSource(str, Enum):  # noqa: UP042
    """Which retrieval path produced a hit."""

    VECTOR = "vector"
    TEXT = "text"


class RetrievalResult(BaseModel):
    """A document annotated with its relevance.

    Vector hits carry ``score`` in [0, 1]; text-search hits are unscored
    because BM25 ranks are not comparable with cosine similarity.
    """

    model_config = ConfigDict(frozen=True)

    document: Document
    score: float | None = Field(default=None, ge=0.0, le=1.0)
    source: RetrievalSource
