"""Fixed-window text chunking with exact overlap and word-boundary back-off.

Splits normalized document text into :class:`~zeb_ai.models.document.ChunkSpan`
windows sized for the embedding model (1000 characters with a 200-character
overlap by default).

The strategy has two goals:

1. **Word-preserving** -- when a window boundary would split a word, the
   boundary backs off to the last whitespace in the part of the window that
   is not shared with the next chunk.  A window with no such whitespace
   (one enormous token) is hard-cut at the size limit.

2. **Exact overlap** -- every span after the first starts exactly
   ``overlap`` characters before the end of its predecessor, so dropping
   the first ``span.overlap`` characters of each later span and
   concatenating rebuilds the source text exactly.
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from zeb_ai.models.document import ChunkSpan

logger = structlog.get_logger(logger_name=__name__)


class TextChunker:
    """Splits text into overlapping, word-aligned windows.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per span (default 1000).
    overlap:
        Characters shared by consecutive spans (default 200).  Must be
        smaller than ``chunk_size``.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(
                f"overlap must satisfy 0 <= overlap < chunk_size, got {overlap} for {chunk_size}"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def iter_chunks(self, text: str) -> Iterator[ChunkSpan]:
        """Lazily yield the spans of *text*.

        Each call returns a fresh generator, so the sequence can be
        re-iterated by calling again.  Empty input yields nothing; input no
        longer than ``chunk_size`` yields one span holding the whole text.
        """
        length = len(text)
        if length == 0:
            return

        start = 0
        index = 0
        shared = 0
        while True:
            limit = start + self._chunk_size
            if limit >= length:
                yield ChunkSpan(text=text[start:], start=start, index=index, overlap=shared)
                return

            cut = self._boundary(text, start, limit)
            yield ChunkSpan(text=text[start:cut], start=start, index=index, overlap=shared)

            start = cut - self._overlap
            shared = self._overlap
            index += 1

    def chunk(self, text: str) -> list[ChunkSpan]:
        """Return every span of *text* as a list."""
        spans = list(self.iter_chunks(text))
        logger.debug(
            "chunking_complete",
            num_chunks=len(spans),
            chars=len(text),
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return spans

    # ------------------------------------------------------------------
    # Boundary selection
    # ------------------------------------------------------------------

    def _boundary(self, text: str, start: int, limit: int) -> int:
        """Return the exclusive end of the window ``[start, limit)``.

        ``limit`` is kept when it does not fall inside a word.  Otherwise
        the cut moves to just after the last whitespace strictly beyond
        ``start + overlap``; the next window then starts past ``start``.
        """
        if text[limit - 1].isspace() or text[limit].isspace():
            return limit

        floor = start + self._overlap
        for pos in range(limit - 1, floor, -1):
            if text[pos].isspace():
                return pos + 1
        return limit
