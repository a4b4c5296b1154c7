"""Knowledge-base ingestion: raw content in, searchable documents out.

Pipeline stages: **extract -> normalize -> chunk | single -> embed -> index**.

The :class:`IngestionService` coordinates its collaborators (file text
extractor, chunker, embedding client, document store) without any of them
knowing about each other:

    1. FileTextExtractor -- uploaded PDF / DOCX / TXT bytes to raw text
    2. normalize_text    -- entity decoding, markup and whitespace clean-up
    3. TextChunker       -- only when the normalized text exceeds the
                            chunking threshold (2000 characters)
    4. EmbeddingClient   -- one call per stored unit, bounded concurrency
    5. IDocumentStore    -- parent and chunks written in one transaction

A chunk whose embedding fails is still stored; it stays reachable through
lexical search and never aborts its siblings.
"""

from __future__ import annotations

import time

import structlog

from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.interfaces.document_store import IDocumentStore
from zeb_ai.interfaces.text_extractor import ITextExtractor
from zeb_ai.models.document import DEFAULT_CATEGORY, ChunkSpan, Document, new_document_id
from zeb_ai.models.pipeline import IngestionResult, IngestPhase
from zeb_ai.models.results import EmbeddingSuccess
from zeb_ai.services.embedding_client import EmbeddingClient
from zeb_ai.services.ingestion.chunker import TextChunker
from zeb_ai.utils.concurrency import throttled_gather, with_timeout
from zeb_ai.utils.errors import DocumentNotFoundError, InputValidationError
from zeb_ai.utils.text_normalizer import normalize_text

logger = structlog.get_logger(logger_name=__name__)

_MAX_TITLE_CHARS = 300


def _clean_title(title: str) -> str:
    return " ".join(normalize_text(title).split())[:_MAX_TITLE_CHARS]


def _clean_category(category: str | None) -> str:
    cleaned = " ".join((category or "").split())
    return cleaned or DEFAULT_CATEGORY


def _clean_tags(tags: list[str] | None) -> list[str]:
    cleaned = (" ".join(tag.split()) for tag in tags or [])
    return list(dict.fromkeys(tag for tag in cleaned if tag))


def chunk_title(title: str, index: int, count: int) -> str:
    """Title of chunk *index* (0-based) out of *count*: ``"{title} (Chunk i/N)"``."""
    return f"{title} (Chunk {index + 1}/{count})"


class IngestionService:
    """Turns uploaded text or files into indexed, embedded documents.

    Parameters
    ----------
    store:
        The document index all writes and reads go through.
    embedding_client:
        Produces vectors (or typed failures) for each stored unit.
    config:
        Chunking threshold, window sizes, concurrency and store timeout.
    extractor:
        Optional file text extractor; required only by :meth:`ingest_file`.
    """

    def __init__(
        self,
        store: IDocumentStore,
        embedding_client: EmbeddingClient,
        config: RAGConfig,
        extractor: ITextExtractor | None = None,
    ) -> None:
        self._store = store
        self._embedding = embedding_client
        self._config = config
        self._extractor = extractor
        self._chunker = TextChunker(chunk_size=config.chunk_size, overlap=config.chunk_overlap)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest_text(
        self,
        title: str,
        content: str,
        owner_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
        is_public: bool = True,
    ) -> IngestionResult:
        """Normalize, optionally chunk, embed and index one document.

        Raises
        ------
        InputValidationError
            If the title is blank or the content is empty after normalization.
        """
        start = time.monotonic()
        phases = [IngestPhase.RECEIVED]

        clean_title = _clean_title(title)
        if not clean_title:
            raise InputValidationError(message="Document title is required")

        text = normalize_text(content)
        phases.append(IngestPhase.NORMALIZED)
        if not text:
            raise InputValidationError(message="Document content is empty")

        parent_id = new_document_id()
        base = {
            "category": _clean_category(category),
            "tags": _clean_tags(tags),
            "owner_id": owner_id,
            "is_public": is_public,
        }

        if len(text) > self._config.chunking_threshold:
            spans = self._chunker.chunk(text)
            phases.append(IngestPhase.CHUNKED)
            phases.append(IngestPhase.EMBEDDING_EACH)
            vectors = await self._embed_all([span.text for span in spans])
            parent = Document(
                id=parent_id,
                title=clean_title,
                content=text,
                chunk_count=len(spans),
                **base,
            )
            chunks = [
                self._build_chunk(parent, span, len(spans), vector)
                for span, vector in zip(spans, vectors)
            ]
            documents = [parent, *chunks]
        else:
            phases.append(IngestPhase.SINGLE)
            phases.append(IngestPhase.EMBEDDING_EACH)
            vectors = await self._embed_all([text])
            parent = Document(
                id=parent_id,
                title=clean_title,
                content=text,
                embedding=vectors[0],
                **base,
            )
            chunks = []
            documents = [parent]

        await self._store.upsert_many(documents)
        phases.append(IngestPhase.INDEXED)

        embedded = sum(1 for vector in vectors if vector is not None)
        result = IngestionResult(
            document_id=parent.id,
            title=parent.title,
            category=parent.category,
            chunks_created=len(chunks),
            embedded=embedded,
            embedding_failures=len(vectors) - embedded,
            phases=phases,
            ingestion_time=round(time.monotonic() - start, 3),
        )
        logger.info(
            "ingestion_complete",
            document_id=result.document_id,
            title=result.title,
            chars=len(text),
            chunks=result.chunks_created,
            embedded=result.embedded,
            embedding_failures=result.embedding_failures,
            time_s=result.ingestion_time,
        )
        return result

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
        """Extract text from an uploaded file and ingest it.

        The title defaults to the uploaded filename.
        """
        if self._extractor is None:
            raise InputValidationError(message="File uploads are not enabled")
        raw = await self._extractor.extract(data, filename, content_type)
        return await self.ingest_text(
            title=title if title and title.strip() else filename,
            content=raw,
            owner_id=owner_id,
            category=category,
            tags=tags,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def delete_document(self, document_id: str) -> int:
        """Delete a document; deleting a parent also deletes all its chunks.

        Returns the number of rows removed.

        Raises
        ------
        DocumentNotFoundError
            If no document has this id.
        """
        document = await self.get_document(document_id)
        removed = 0
        if not document.is_chunk:
            removed += await self._store.delete_by_parent(document_id)
        if await self._store.delete(document_id):
            removed += 1
        logger.info("document_deleted", document_id=document_id, removed=removed)
        return removed

    async def update_metadata(
        self,
        document_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> Document:
        if category is None and tags is None:
            raise InputValidationError(message="Provide a category or tags to update")
        updated = await self._store.update_metadata(
            document_id,
            category=_clean_category(category) if category is not None else None,
            tags=_clean_tags(tags) if tags is not None else None,
        )
        if updated is None:
            raise DocumentNotFoundError(message=f"Document {document_id} not found")
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_document(self, document_id: str) -> Document:
        document = await with_timeout(
            self._store.get(document_id),
            self._config.store_timeout,
            provider_name="document_store",
            operation="get_document",
        )
        if document is None:
            raise DocumentNotFoundError(message=f"Document {document_id} not found")
        return document

    async def list_chunks(self, parent_id: str) -> list[Document]:
        await self.get_document(parent_id)
        return await with_timeout(
            self._store.find_by_parent(parent_id),
            self._config.store_timeout,
            provider_name="document_store",
            operation="find_by_parent",
        )

    async def list_documents(
        self,
        category: str | None = None,
        include_chunks: bool = False,
        limit: int = 20,
        page: int = 1,
    ) -> tuple[list[Document], int]:
        return await with_timeout(
            self._store.list_documents(
                category=category,
                include_chunks=include_chunks,
                limit=limit,
                page=page,
            ),
            self._config.store_timeout,
            provider_name="document_store",
            operation="list_documents",
        )

    async def count(self) -> int:
        return await with_timeout(
            self._store.count(),
            self._config.store_timeout,
            provider_name="document_store",
            operation="count",
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_all(self, texts: list[str]) -> list[list[float] | None]:
        """Embed *texts* with bounded fan-out; failed slots come back as ``None``."""
        results = await throttled_gather(
            [self._embedding.embed(text) for text in texts],
            return_exceptions=True,
            limit=self._config.embed_concurrency,
        )
        vectors: list[list[float] | None] = []
        for index, result in enumerate(results):
            if isinstance(result, EmbeddingSuccess):
                vectors.append(result.vector)
                continue
            if isinstance(result, BaseException):
                logger.error(
                    "chunk_embedding_crashed",
                    chunk_index=index,
                    error=repr(result),
                    exc_info=result,
                )
            else:
                logger.warning(
                    "chunk_embedding_failed",
                    chunk_index=index,
                    reason=result.reason.value,
                )
            vectors.append(None)
        return vectors

    @staticmethod
    def _build_chunk(
        parent: Document,
        span: ChunkSpan,
        count: int,
        vector: list[float] | None,
    ) -> Document:
        return Document(
            title=chunk_title(parent.title, span.index, count),
            content=span.text,
            category=parent.category,
            tags=parent.tags,
            owner_id=parent.owner_id,
            is_public=parent.is_public,
            embedding=vector,
            is_chunk=True,
            parent_id=parent.id,
            chunk_index=span.index,
            chunk_count=count,
            created_at=parent.created_at,
            updated_at=parent.updated_at,
        )
