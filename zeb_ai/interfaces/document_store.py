"""Abstract base class for the document index / store.

The store is the single system of record for documents and their
embeddings.  The core consumes it through this query surface and never
caches its contents between requests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from zeb_ai.models.document import Document, RetrievalResult


# Concrete implementation: SQLiteDocumentStore (zeb_ai/providers/document_store/)
class IDocumentStore(ABC):
    """Storage and search contract for knowledge-base documents.

    Retrieval candidates (``vector_search`` / ``text_search``) are public
    chunks and public unsplit documents; split parents are excluded because
    their text is already covered by their chunks.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist."""

    # -- Retrieval -----------------------------------------------------------

    @abstractmethod
    async def vector_search(self, vector: list[float], limit: int) -> list[RetrievalResult]:
        """Return up to *limit* nearest neighbours of *vector*, best first.

        Scores are cosine similarity mapped into [0, 1].
        """

    @abstractmethod
    async def text_search(self, query: str, limit: int) -> list[RetrievalResult]:
        """Return up to *limit* lexical matches for *query*, best first, unscored."""

    # -- Writes --------------------------------------------------------------

    @abstractmethod
    async def upsert(self, document: Document) -> None:
        """Insert or replace one document.

        Raises
        ------
        zeb_ai.utils.errors.IndexDimensionMismatchError
            If the document's embedding length differs from the index dimension.
        """

    @abstractmethod
    async def upsert_many(self, documents: list[Document]) -> None:
        """Insert or replace several documents in a single transaction."""

    @abstractmethod
    async def update_metadata(
        self,
        document_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> Document | None:
        """Change category and/or tags; return the updated document or ``None``."""

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """Delete one document; return ``True`` if it existed."""

    @abstractmethod
    async def delete_by_parent(self, parent_id: str) -> int:
        """Delete every chunk of *parent_id*; return the number removed."""

    # -- Reads ---------------------------------------------------------------

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """Return a document or chunk by id."""

    @abstractmethod
    async def find_by_parent(self, parent_id: str) -> list[Document]:
        """Return the chunks of *parent_id* ordered by ``chunk_index``."""

    @abstractmethod
    async def list_documents(
        self,
        category: str | None = None,
        include_chunks: bool = False,
        limit: int = 20,
        page: int = 1,
    ) -> tuple[list[Document], int]:
        """Return one page of public documents (newest first) and the total count."""

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of stored rows (parents and chunks)."""
