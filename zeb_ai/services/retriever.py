"""Context retrieval over the document store.

Two strategies, tried strictly in order and never merged:

1. **Vector search** when a query vector is available.  Hits carry a
   similarity score in [0, 1].
2. **Text search** when there is no vector, vector search failed or timed
   out, or it produced nothing.  Hits are unscored.

If both paths fail the retriever returns an empty list: an empty context is
a normal outcome that the answer generator handles, not an error.
"""

from __future__ import annotations

import structlog

from zeb_ai.interfaces.document_store import IDocumentStore
from zeb_ai.models.document import RetrievalResult
from zeb_ai.utils.concurrency import with_timeout
from zeb_ai.utils.errors import ZebAIError

logger = structlog.get_logger(logger_name=__name__)


class Retriever:
    """Finds the documents most relevant to a question.

    Parameters
    ----------
    store:
        The document index.
    default_limit:
        Number of results when the caller passes no ``limit`` (3).
    min_similarity:
        Vector hits scoring at or below this are dropped; ``0`` keeps all.
    timeout:
        Seconds allowed per store query; ``0`` disables the deadline.
    """

    def __init__(
        self,
        store: IDocumentStore,
        default_limit: int = 3,
        min_similarity: float = 0.0,
        timeout: float = 5.0,
    ) -> None:
        self._store = store
        self._default_limit = default_limit
        self._min_similarity = min_similarity
        self._timeout = timeout

    async def retrieve(
        self,
        query_text: str,
        query_vector: list[float] | None = None,
        limit: int | None = None,
    ) -> list[RetrievalResult]:
        """Return up to *limit* results for the question, best first."""
        limit = self._default_limit if limit is None else limit
        if limit <= 0:
            return []

        if query_vector is not None:
            results = await self._vector_search(query_vector, limit)
            if results:
                logger.info("retrieval_complete", strategy="vector", results=len(results))
                return results

        results = await self._text_search(query_text, limit)
        logger.info(
            "retrieval_complete",
            strategy="text",
            results=len(results),
            had_vector=query_vector is not None,
        )
        return results

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _vector_search(self, vector: list[float], limit: int) -> list[RetrievalResult]:
        try:
            hits = await with_timeout(
                self._store.vector_search(vector, limit),
                self._timeout,
                provider_name="document_store",
                operation="vector_search",
            )
        except ZebAIError as exc:
            logger.warning("vector_search_failed", error=str(exc))
            return []

        if self._min_similarity > 0:
            hits = [hit for hit in hits if hit.score is not None and hit.score > self._min_similarity]
        return hits[:limit]

    async def _text_search(self, query: str, limit: int) -> list[RetrievalResult]:
        if not query.strip():
            return []
        try:
            hits = await with_timeout(
                self._store.text_search(query, limit),
                self._timeout,
                provider_name="document_store",
                operation="text_search",
            )
        except ZebAIError as exc:
            logger.warning("text_search_failed", error=str(exc))
            return []
        return hits[:limit]
