"""SQLite-backed document store with FTS5 lexical search.

Persists documents and chunks to a local SQLite database (default
``data/zeb_ai.db``) through ``aiosqlite``.  Embeddings are stored as JSON
arrays alongside each row; vector search loads the public candidate rows and
ranks them with numpy.  Lexical search goes through an FTS5 table kept in
step with ``documents`` inside the same transaction as every write.

Retrieval candidates are public chunks and public unsplit documents.  Split
parents stay listable and addressable but never compete with their own
chunks in search results.
"""

from __future__ import annotations

import json
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np
import structlog

from zeb_ai.interfaces.document_store import IDocumentStore
from zeb_ai.models.document import Document, RetrievalResult, RetrievalSource
from zeb_ai.utils.errors import IndexDimensionMismatchError, PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/zeb_ai.db")
_PROVIDER_NAME = "sqlite_documents"

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id           TEXT    PRIMARY KEY,
    title        TEXT    NOT NULL,
    content      TEXT    NOT NULL,
    category     TEXT    NOT NULL DEFAULT 'other',
    tags         TEXT    NOT NULL DEFAULT '[]',
    owner_id     TEXT    NOT NULL,
    is_public    INTEGER NOT NULL DEFAULT 1,
    embedding    TEXT,
    is_chunk     INTEGER NOT NULL DEFAULT 0,
    parent_id    TEXT,
    chunk_index  INTEGER,
    chunk_count  INTEGER,
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
"""

_CREATE_FTS_SQL = """\
CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
    doc_id UNINDEXED,
    title,
    content
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_parent ON documents(parent_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_category ON documents(category);",
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
]

_UPSERT_SQL = """\
INSERT INTO documents (
    id, title, content, category, tags, owner_id, is_public, embedding,
    is_chunk, parent_id, chunk_index, chunk_count, created_at, updated_at
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id)
DO UPDATE SET title       = excluded.title,
              content     = excluded.content,
              category    = excluded.category,
              tags        = excluded.tags,
              owner_id    = excluded.owner_id,
              is_public   = excluded.is_public,
              embedding   = excluded.embedding,
              is_chunk    = excluded.is_chunk,
              parent_id   = excluded.parent_id,
              chunk_index = excluded.chunk_index,
              chunk_count = excluded.chunk_count,
              updated_at  = excluded.updated_at;
"""

# Public chunks and public unsplit documents.
_CANDIDATE_FILTER = "d.is_public = 1 AND (d.is_chunk = 1 OR COALESCE(d.chunk_count, 0) = 0)"

_VECTOR_CANDIDATES_SQL = (
    "SELECT d.* FROM documents d "
    f"WHERE {_CANDIDATE_FILTER} AND d.embedding IS NOT NULL"
)

_TEXT_SEARCH_SQL = (
    "SELECT d.* FROM documents_fts "
    "JOIN documents d ON d.id = documents_fts.doc_id "
    f"WHERE documents_fts MATCH ? AND {_CANDIDATE_FILTER} "
    "ORDER BY bm25(documents_fts), d.id "
    "LIMIT ?"
)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _utcnow_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _fts_query(text: str) -> str:
    """OR together the quoted word tokens of *text* for an FTS5 MATCH."""
    tokens = dict.fromkeys(token.lower() for token in _TOKEN_RE.findall(text))
    return " OR ".join(f'"{token}"' for token in tokens)


def _row_to_document(row: aiosqlite.Row) -> Document:
    data: dict[str, Any] = dict(row)
    data["tags"] = json.loads(data["tags"] or "[]")
    data["embedding"] = json.loads(data["embedding"]) if data["embedding"] else None
    data["is_public"] = bool(data["is_public"])
    data["is_chunk"] = bool(data["is_chunk"])
    return Document.model_validate(data)


def _document_params(document: Document) -> tuple[Any, ...]:
    return (
        document.id,
        document.title,
        document.content,
        document.category,
        json.dumps(document.tags),
        document.owner_id,
        int(document.is_public),
        json.dumps(document.embedding) if document.embedding is not None else None,
        int(document.is_chunk),
        document.parent_id,
        document.chunk_index,
        document.chunk_count,
        document.created_at.isoformat(),
        document.updated_at.isoformat(),
    )


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document index.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file; parent directories are created
        on :meth:`initialize`.
    dimension:
        Required length of every stored embedding.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH, dimension: int = 1024) -> None:
        self._db_path = Path(db_path)
        self._dimension = dimension

    # ------------------------------------------------------------------
    # Connection helper
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Document store error: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    # ------------------------------------------------------------------
    # IDocumentStore implementation
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create the documents table, FTS index and indices if missing."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.execute(_CREATE_FTS_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path), dimension=self._dimension)

    async def vector_search(self, vector: list[float], limit: int) -> list[RetrievalResult]:
        """Rank candidates by cosine similarity, mapped to ``(cos + 1) / 2``."""
        if limit <= 0:
            return []
        if len(vector) != self._dimension:
            raise IndexDimensionMismatchError(
                message=f"Query vector has {len(vector)} dims, index expects {self._dimension}",
                provider_name=_PROVIDER_NAME,
            )

        async with self._connect() as db:
            cursor = await db.execute(_VECTOR_CANDIDATES_SQL)
            rows = await cursor.fetchall()

        documents = [_row_to_document(row) for row in rows]
        documents = [doc for doc in documents if len(doc.embedding or ()) == self._dimension]
        if not documents:
            return []

        matrix = np.asarray([doc.embedding for doc in documents], dtype=np.float64)
        query = np.asarray(vector, dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            cosine = np.where(norms > 0, matrix @ query / norms, 0.0)
        scores = np.clip((cosine + 1.0) / 2.0, 0.0, 1.0)

        # Stable sort so equal scores keep id order.
        order = sorted(range(len(documents)), key=lambda i: (-scores[i], documents[i].id))
        return [
            RetrievalResult(
                document=documents[i],
                score=float(scores[i]),
                source=RetrievalSource.VECTOR,
            )
            for i in order[:limit]
        ]

    async def text_search(self, query: str, limit: int) -> list[RetrievalResult]:
        """Rank candidates with FTS5 BM25 over title and content."""
        match = _fts_query(query)
        if limit <= 0 or not match:
            return []

        async with self._connect() as db:
            cursor = await db.execute(_TEXT_SEARCH_SQL, (match, limit))
            rows = await cursor.fetchall()

        return [
            RetrievalResult(document=_row_to_document(row), source=RetrievalSource.TEXT)
            for row in rows
        ]

    async def upsert(self, document: Document) -> None:
        await self.upsert_many([document])

    async def upsert_many(self, documents: list[Document]) -> None:
        """Write *documents* and their FTS rows in a single transaction."""
        if not documents:
            return
        for document in documents:
            if document.embedding is not None and len(document.embedding) != self._dimension:
                raise IndexDimensionMismatchError(
                    message=(
                        f"Document {document.id} has a {len(document.embedding)}-dim embedding, "
                        f"index expects {self._dimension}"
                    ),
                    provider_name=_PROVIDER_NAME,
                )

        async with self._connect() as db:
            for document in documents:
                await db.execute(_UPSERT_SQL, _document_params(document))
                await db.execute("DELETE FROM documents_fts WHERE doc_id = ?", (document.id,))
                await db.execute(
                    "INSERT INTO documents_fts (doc_id, title, content) VALUES (?, ?, ?)",
                    (document.id, document.title, document.content),
                )
            await db.commit()
        logger.debug("documents_upserted", count=len(documents))

    async def update_metadata(
        self,
        document_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> Document | None:
        """Update category/tags on a document and, for a parent, on its chunks."""
        tags_json = json.dumps(tags) if tags is not None else None
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE documents SET category = COALESCE(?, category), "
                "tags = COALESCE(?, tags), updated_at = ? "
                "WHERE id = ? OR parent_id = ?",
                (category, tags_json, _utcnow_iso(), document_id, document_id),
            )
            await db.commit()
            if cursor.rowcount == 0:
                return None
        return await self.get(document_id)

    async def delete(self, document_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.execute("DELETE FROM documents_fts WHERE doc_id = ?", (document_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def delete_by_parent(self, parent_id: str) -> int:
        async with self._connect() as db:
            await db.execute(
                "DELETE FROM documents_fts WHERE doc_id IN "
                "(SELECT id FROM documents WHERE parent_id = ?)",
                (parent_id,),
            )
            cursor = await db.execute("DELETE FROM documents WHERE parent_id = ?", (parent_id,))
            await db.commit()
            removed = cursor.rowcount
        logger.info("chunks_deleted", parent_id=parent_id, count=removed)
        return removed

    async def get(self, document_id: str) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM documents WHERE id = ?", (document_id,))
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def find_by_parent(self, parent_id: str) -> list[Document]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM documents WHERE parent_id = ? ORDER BY chunk_index",
                (parent_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_document(row) for row in rows]

    async def list_documents(
        self,
        category: str | None = None,
        include_chunks: bool = False,
        limit: int = 20,
        page: int = 1,
    ) -> tuple[list[Document], int]:
        """Return one page of public documents, newest first, plus the total."""
        clauses = ["is_public = 1"]
        params: list[Any] = []
        if category:
            clauses.append("category = ?")
            params.append(category)
        if not include_chunks:
            clauses.append("is_chunk = 0")
        where = " AND ".join(clauses)

        limit = max(1, limit)
        offset = (max(1, page) - 1) * limit
        async with self._connect() as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM documents WHERE {where}", params)
            total_row = await cursor.fetchone()
            cursor = await db.execute(
                f"SELECT * FROM documents WHERE {where} "
                "ORDER BY created_at DESC, chunk_index, id LIMIT ? OFFSET ?",
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()
        return [_row_to_document(row) for row in rows], int(total_row[0])

    async def count(self) -> int:
        async with self._connect() as db:
            cursor = await db.execute("SELECT COUNT(*) FROM documents")
            row = await cursor.fetchone()
        return int(row[0])

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return _PROVIDER_NAME
