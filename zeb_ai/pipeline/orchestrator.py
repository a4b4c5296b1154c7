"""RAG orchestrator: the question-answering and ingestion entry points.

``ask`` walks a small state machine and records every phase it enters:

    RECEIVED -> EMBEDDING -> RETRIEVING -> GENERATING -> PERSISTING -> COMPLETED

An embedding failure inserts ``ERROR_RECOVERED`` and retrieval continues on
the lexical path.  A generation *provider* failure is absorbed into the
fixed degraded answer.  Only an unexpected error inside generation ends in
``FAILED`` and surfaces as :class:`GenerationError`.  Persisting the
exchange is best effort: a store failure is logged and the answer is still
returned.

Ingestion and deletion run in tasks the orchestrator tracks and awaits
through :func:`asyncio.shield`, so a client that disconnects mid-upload
does not leave a half-written document behind.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import structlog

from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.interfaces.conversation_store import IConversationStore
from zeb_ai.models.conversation import Conversation, MessageRole, derive_title
from zeb_ai.models.pipeline import AskPhase, AskResult, IngestionResult, SourceReference
from zeb_ai.models.results import EmbeddingSuccess, GenerationSuccess
from zeb_ai.services.answer_generator import AnswerGenerator
from zeb_ai.services.embedding_client import EmbeddingClient
from zeb_ai.services.ingestion.ingestion_service import IngestionService
from zeb_ai.services.retriever import Retriever
from zeb_ai.utils.concurrency import with_timeout
from zeb_ai.utils.errors import GenerationError, InputValidationError, ZebAIError

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")

DEGRADED_ANSWER = (
    "I'm currently unable to process your request due to a connection issue. "
    "Please try again later."
)


class RAGOrchestrator:
    """Coordinates embedding, retrieval, generation and persistence.

    All collaborators are injected; the orchestrator never creates them.

    Parameters
    ----------
    embedding_client:
        Embeds the question (and, via the ingestion service, documents).
    retriever:
        Vector search with lexical fallback over the document store.
    generator:
        Builds the prompt and calls the generative provider.
    ingestion:
        Handles uploads, deletion and document reads.
    config:
        Question length limit and store timeout.
    conversations:
        Optional conversation store; without one, exchanges are not saved.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        retriever: Retriever,
        generator: AnswerGenerator,
        ingestion: IngestionService,
        config: RAGConfig,
        conversations: IConversationStore | None = None,
    ) -> None:
        self._embedding = embedding_client
        self._retriever = retriever
        self._generator = generator
        self._ingestion = ingestion
        self._config = config
        self._conversations = conversations
        self._background: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Ask
    # ------------------------------------------------------------------

    async def ask(
        self,
        question: str,
        owner_id: str,
        conversation_id: str | None = None,
    ) -> AskResult:
        """Answer *question* for *owner_id*, continuing *conversation_id* if it is theirs.

        Raises
        ------
        InputValidationError
            If the stripped question is empty or too long.  Checked before
            any provider call.
        GenerationError
            If generation fails with a non-provider error.
        """
        phases = [AskPhase.RECEIVED]
        question = question.strip()
        if not question:
            raise InputValidationError(message="Question must not be empty")
        if len(question) > self._config.max_question_length:
            raise InputValidationError(
                message=f"Question exceeds {self._config.max_question_length} characters",
            )

        # --- Embed ---
        phases.append(AskPhase.EMBEDDING)
        embedding = await self._embedding.embed(question)
        vector: list[float] | None = None
        if isinstance(embedding, EmbeddingSuccess):
            vector = embedding.vector
        else:
            phases.append(AskPhase.ERROR_RECOVERED)
            logger.warning(
                "ask_embedding_recovered",
                reason=embedding.reason.value,
                provider=embedding.provider,
            )

        # --- Retrieve ---
        phases.append(AskPhase.RETRIEVING)
        context = await self._retriever.retrieve(question, vector)

        # --- Generate ---
        phases.append(AskPhase.GENERATING)
        try:
            generation = await self._generator.generate(question, context)
        except Exception as exc:
            phases.append(AskPhase.FAILED)
            logger.error("ask_failed", phases=[p.value for p in phases], error=repr(exc), exc_info=True)
            raise GenerationError() from exc

        if isinstance(generation, GenerationSuccess):
            answer, degraded = generation.text, False
        else:
            answer, degraded = DEGRADED_ANSWER, True

        # --- Persist ---
        phases.append(AskPhase.PERSISTING)
        saved_id = await self._persist_exchange(owner_id, conversation_id, question, answer)

        phases.append(AskPhase.COMPLETED)
        logger.info(
            "ask_complete",
            conversation_id=saved_id,
            sources=len(context),
            degraded=degraded,
            phases=[p.value for p in phases],
        )
        return AskResult(
            question=question,
            answer=answer,
            sources=[SourceReference.from_result(hit) for hit in context],
            conversation_id=saved_id,
            degraded=degraded,
            phases=phases,
        )

    async def _persist_exchange(
        self,
        owner_id: str,
        conversation_id: str | None,
        question: str,
        answer: str,
    ) -> str | None:
        """Append the user and model messages; return the conversation id or ``None``."""
        if self._conversations is None:
            return None

        store = self._conversations
        conversation: Conversation | None = None
        try:
            if conversation_id:
                conversation = await with_timeout(
                    store.find_conversation(conversation_id, owner_id),
                    self._config.store_timeout,
                    provider_name="conversation_store",
                    operation="find_conversation",
                )
            if conversation is None:
                conversation = await store.create_conversation(owner_id, derive_title(question))
            await store.append_message(conversation.id, owner_id, MessageRole.USER, question)
            await store.append_message(conversation.id, owner_id, MessageRole.MODEL, answer)
        except ZebAIError as exc:
            logger.warning(
                "conversation_persist_failed",
                owner_id=owner_id,
                conversation_id=conversation.id if conversation else conversation_id,
                error=str(exc),
            )
        return conversation.id if conversation else None

    # ------------------------------------------------------------------
    # Ingestion (shielded from caller cancellation)
    # ------------------------------------------------------------------

    async def ingest_text(
        self,
        title: str,
        content: str,
        owner_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> IngestionResult:
        return await self._run_shielded(
            self._ingestion.ingest_text(
                title=title,
                content=content,
                owner_id=owner_id,
                category=category,
                tags=tags,
            ),
            operation="ingest_text",
        )

    async def ingest_file(
        self,
        data: bytes,
        filename: str,
        owner_id: str,
        title: str | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        content_type: str | None = None,
    ) -> IngestionResult:
        return await self._run_shielded(
            self._ingestion.ingest_file(
                data=data,
                filename=filename,
                owner_id=owner_id,
                title=title,
                category=category,
                tags=tags,
                content_type=content_type,
            ),
            operation="ingest_file",
        )

    async def delete_document(self, document_id: str) -> int:
        """Delete a document and, for a parent, all of its chunks."""
        return await self._run_shielded(
            self._ingestion.delete_document(document_id),
            operation="delete_document",
        )

    async def drain(self) -> None:
        """Wait for in-flight background ingestion to finish (used on shutdown)."""
        if self._background:
            logger.info("draining_background_tasks", count=len(self._background))
            await asyncio.gather(*self._background, return_exceptions=True)

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    async def _run_shielded(self, coro: Coroutine[Any, Any, _T], operation: str) -> _T:
        task = asyncio.create_task(coro, name=f"zeb-ai-{operation}")
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return await asyncio.shield(task)

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        # Marks the exception retrieved when the awaiting caller went away.
        exc = task.exception()
        if exc is not None:
            logger.debug("background_task_failed", task=task.get_name(), error=str(exc))
