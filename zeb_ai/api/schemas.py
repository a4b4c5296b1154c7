"""Pydantic request/response schemas for the Zeb AI API.

Defines the public contract for every REST endpoint: asking questions,
managing knowledge-base documents, browsing conversations and health.

Convention: request schemas end with "Request", response schemas end with
"Response".  ``Field(...)`` adds constraints and descriptions for the
generated OpenAPI docs at ``/docs``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from zeb_ai.models.conversation import Conversation, Message
from zeb_ai.models.document import Document
from zeb_ai.models.pipeline import IngestionResult, SourceReference


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class AskQuestionRequest(BaseModel):
    """A campus-safety question, optionally continuing a conversation."""

    question: str = Field(..., description="Checked after stripping against the configured maximum length.")
    conversation_id: str | None = None


class AskQuestionResponse(BaseModel):
    """Grounded answer with the documents it was built from."""

    question: str
    answer: str
    sources: list[SourceReference] = Field(default_factory=list)
    conversation_id: str | None = None
    degraded: bool = Field(default=False, description="True when the fallback answer was returned.")
    timestamp: datetime


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class IngestTextRequest(BaseModel):
    """Raw text to add to the knowledge base."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    category: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list)


class IngestResponse(BaseModel):
    """Summary of an ingested document."""

    message: str
    document: IngestionResult


class DocumentSummary(BaseModel):
    """A document or chunk without its body or embedding."""

    id: str
    title: str
    category: str
    tags: list[str] = Field(default_factory=list)
    owner_id: str
    is_public: bool
    is_chunk: bool
    parent_id: str | None = None
    chunk_index: int | None = None
    chunk_count: int | None = None
    has_embedding: bool
    content_preview: str = Field(description="First 200 characters of the body.")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: Document) -> "DocumentSummary":
        return cls(
            id=doc.id,
            title=doc.title,
            category=doc.category,
            tags=doc.tags,
            owner_id=doc.owner_id,
            is_public=doc.is_public,
            is_chunk=doc.is_chunk,
            parent_id=doc.parent_id,
            chunk_index=doc.chunk_index,
            chunk_count=doc.chunk_count,
            has_embedding=doc.has_embedding,
            content_preview=doc.content[:200],
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )


class DocumentDetailResponse(DocumentSummary):
    """A single document including its full body text."""

    content: str

    @classmethod
    def from_document(cls, doc: Document) -> "DocumentDetailResponse":
        summary = DocumentSummary.from_document(doc)
        return cls(**summary.model_dump(), content=doc.content)


class DocumentListResponse(BaseModel):
    """One page of documents."""

    documents: list[DocumentSummary] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    pages: int


class UpdateDocumentRequest(BaseModel):
    """Metadata changes; omitted fields are left as they are."""

    category: str | None = Field(default=None, max_length=100)
    tags: list[str] | None = None


class DeleteDocumentResponse(BaseModel):
    message: str
    deleted: int = Field(description="Rows removed, the document plus any chunks.")


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


class ConversationListResponse(BaseModel):
    conversations: list[Conversation] = Field(default_factory=list)


class MessageListResponse(BaseModel):
    conversation_id: str
    messages: list[Message] = Field(default_factory=list)


class DeleteConversationResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
    documents: int | None = None
