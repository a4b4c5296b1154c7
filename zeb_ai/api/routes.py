"""FastAPI routes for the Zeb AI assistant.

Service dependencies are resolved from ``app.state`` (populated by
``main._build_all``) via ``Annotated[..., Depends(...)]``.  The caller's
identity arrives in the ``X-User-Id`` header, set by the upstream
authentication layer; requests without it act as ``anonymous``.

# Endpoint                              Method  Description
# -----------------------------------------------------------------------
# /api/v1/chat/ask                      POST    Ask a campus-safety question
# /api/v1/documents/text                POST    Ingest title + text
# /api/v1/documents/file                POST    Ingest an uploaded file
# /api/v1/documents                     GET     List documents (paginated)
# /api/v1/documents/{id}                GET     Fetch a document or chunk
# /api/v1/documents/{id}/chunks         GET     List the chunks of a parent
# /api/v1/documents/{id}                PATCH   Update category / tags
# /api/v1/documents/{id}                DELETE  Delete, cascading to chunks
# /api/v1/conversations                 GET     List the caller's conversations
# /api/v1/conversations/{id}/messages   GET     Messages of one conversation
# /api/v1/conversations/{id}            DELETE  Delete a conversation
# /api/v1/health                        GET     Provider status + document count
"""

from __future__ import annotations

import math
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile

from zeb_ai.api.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    ConversationListResponse,
    DeleteConversationResponse,
    DeleteDocumentResponse,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentSummary,
    ErrorResponse,
    HealthResponse,
    IngestResponse,
    IngestTextRequest,
    MessageListResponse,
    UpdateDocumentRequest,
)
from zeb_ai.interfaces.conversation_store import IConversationStore
from zeb_ai.pipeline.orchestrator import RAGOrchestrator
from zeb_ai.services.ingestion.ingestion_service import IngestionService
from zeb_ai.utils.errors import ConversationNotFoundError, ZebAIError
from zeb_ai.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"
_ANONYMOUS = "anonymous"
_MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_orchestrator(request: Request) -> RAGOrchestrator:
    """Return the RAG orchestrator from application state."""
    return request.app.state.orchestrator


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion service from application state."""
    return request.app.state.ingestion_service


def _get_conversation_store(request: Request) -> IConversationStore:
    """Return the conversation store from application state."""
    return request.app.state.conversation_store


def _get_owner_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Return the caller id from the ``X-User-Id`` header."""
    owner = (x_user_id or "").strip()
    return owner or _ANONYMOUS


OrchestratorDep = Annotated[RAGOrchestrator, Depends(_get_orchestrator)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
ConversationStoreDep = Annotated[IConversationStore, Depends(_get_conversation_store)]
OwnerDep = Annotated[str, Depends(_get_owner_id)]


def _split_tags(raw: str | None) -> list[str]:
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat/ask",
    response_model=AskQuestionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Ask a campus-safety question",
)
async def ask_question(
    body: AskQuestionRequest,
    orchestrator: OrchestratorDep,
    owner_id: OwnerDep,
) -> AskQuestionResponse:
    """Answer a question from the knowledge base and record the exchange."""
    result = await orchestrator.ask(
        body.question,
        owner_id=owner_id,
        conversation_id=body.conversation_id,
    )
    return AskQuestionResponse(
        question=result.question,
        answer=result.answer,
        sources=result.sources,
        conversation_id=result.conversation_id,
        degraded=result.degraded,
        timestamp=result.timestamp,
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents/text",
    response_model=IngestResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Add a text document to the knowledge base",
)
async def ingest_text(
    body: IngestTextRequest,
    orchestrator: OrchestratorDep,
    owner_id: OwnerDep,
) -> IngestResponse:
    result = await orchestrator.ingest_text(
        title=body.title,
        content=body.content,
        owner_id=owner_id,
        category=body.category,
        tags=body.tags,
    )
    return IngestResponse(message="Document uploaded successfully", document=result)


@router.post(
    "/documents/file",
    response_model=IngestResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload a PDF, DOCX or text file to the knowledge base",
)
async def ingest_file(
    orchestrator: OrchestratorDep,
    owner_id: OwnerDep,
    file: Annotated[UploadFile, File()],
    title: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form(description="Comma-separated tags")] = None,
) -> IngestResponse:
    """Extract the file's text and ingest it; the title defaults to the filename."""
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > _MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {_MAX_UPLOAD_SIZE // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    data = b"".join(chunks)

    filename = file.filename or "upload"
    result = await orchestrator.ingest_file(
        data=data,
        filename=filename,
        owner_id=owner_id,
        title=title,
        category=category,
        tags=_split_tags(tags),
        content_type=file.content_type,
    )
    return IngestResponse(message="File uploaded successfully", document=result)


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List knowledge-base documents",
)
async def list_documents(
    ingestion: IngestionDep,
    category: str | None = None,
    include_chunks: bool = False,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    page: Annotated[int, Query(ge=1)] = 1,
) -> DocumentListResponse:
    """Return public documents, newest first.  Chunks are hidden unless requested."""
    documents, total = await ingestion.list_documents(
        category=category,
        include_chunks=include_chunks,
        limit=limit,
        page=page,
    )
    return DocumentListResponse(
        documents=[DocumentSummary.from_document(doc) for doc in documents],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Fetch one document or chunk",
)
async def get_document(document_id: str, ingestion: IngestionDep) -> DocumentDetailResponse:
    document = await ingestion.get_document(document_id)
    return DocumentDetailResponse.from_document(document)


@router.get(
    "/documents/{document_id}/chunks",
    response_model=list[DocumentSummary],
    responses={404: {"model": ErrorResponse}},
    summary="List the chunks of a document",
)
async def list_chunks(document_id: str, ingestion: IngestionDep) -> list[DocumentSummary]:
    chunks = await ingestion.list_chunks(document_id)
    return [DocumentSummary.from_document(chunk) for chunk in chunks]


@router.patch(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update a document's category or tags",
)
async def update_document(
    document_id: str,
    body: UpdateDocumentRequest,
    ingestion: IngestionDep,
) -> DocumentDetailResponse:
    document = await ingestion.update_metadata(document_id, category=body.category, tags=body.tags)
    return DocumentDetailResponse.from_document(document)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteDocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document and its chunks",
)
async def delete_document(document_id: str, orchestrator: OrchestratorDep) -> DeleteDocumentResponse:
    removed = await orchestrator.delete_document(document_id)
    return DeleteDocumentResponse(message="Document deleted successfully", deleted=removed)


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    summary="List the caller's conversations",
)
async def list_conversations(
    store: ConversationStoreDep,
    owner_id: OwnerDep,
) -> ConversationListResponse:
    conversations = await store.list_conversations(owner_id)
    return ConversationListResponse(conversations=conversations)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=MessageListResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Messages of one conversation, oldest first",
)
async def list_messages(
    conversation_id: str,
    store: ConversationStoreDep,
    owner_id: OwnerDep,
) -> MessageListResponse:
    messages = await store.list_messages(conversation_id, owner_id)
    return MessageListResponse(conversation_id=conversation_id, messages=messages)


@router.delete(
    "/conversations/{conversation_id}",
    response_model=DeleteConversationResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a conversation and its messages",
)
async def delete_conversation(
    conversation_id: str,
    store: ConversationStoreDep,
    owner_id: OwnerDep,
) -> DeleteConversationResponse:
    if not await store.delete_conversation(conversation_id, owner_id):
        raise ConversationNotFoundError(message=f"Conversation {conversation_id} not found")
    return DeleteConversationResponse(message="Conversation deleted")


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request, ingestion: IngestionDep) -> HealthResponse:
    """Report provider availability and the number of stored documents.

    ``degraded`` means the store answers but a provider is missing; answers
    then fall back to lexical search or the fixed fallback text.
    """
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))

    documents: int | None
    try:
        documents = await ingestion.count()
        providers["document_store"] = True
    except ZebAIError as exc:
        _logger.warning("health_store_unavailable", error=str(exc))
        documents = None
        providers["document_store"] = False

    if not providers["document_store"]:
        status = "unhealthy"
    elif providers.get("llm") and providers.get("embedding"):
        status = "healthy"
    else:
        status = "degraded"

    return HealthResponse(status=status, version=_VERSION, providers=providers, documents=documents)
