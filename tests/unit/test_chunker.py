"""Unit tests for the TextChunker -- fixed windows with exact overlap and word back-off."""

from __future__ import annotations

import pytest

from zeb_ai.models.document import ChunkSpan
from zeb_ai.services.ingestion.chunker import TextChunker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_chunker(chunk_size: int = 1000, overlap: int = 200) -> TextChunker:
    """Build a TextChunker with a predictable configuration."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap)


def _safety_text(length: int) -> str:
    """Word-separated text of exactly *length* characters."""
    words = " ".join(f"evacuation{i}" for i in range(length))
    return words[:length]


def _rebuild(spans: list[ChunkSpan]) -> str:
    return "".join(span.unique_text for span in spans)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.overlap == 200

    @pytest.mark.parametrize(
        ("chunk_size", "overlap"),
        [(0, 0), (-5, 0), (100, 100), (100, 150), (100, -1)],
    )
    def test_invalid_window_rejected(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=chunk_size, overlap=overlap)


class TestSmallInputs:
    def test_empty_text_yields_nothing(self) -> None:
        assert _make_chunker().chunk("") == []

    def test_short_text_is_single_chunk(self) -> None:
        text = "Report suspicious activity to campus security."
        spans = _make_chunker().chunk(text)
        assert len(spans) == 1
        assert spans[0].text == text
        assert spans[0].start == 0
        assert spans[0].index == 0
        assert spans[0].overlap == 0

    def test_text_exactly_chunk_size_is_single_chunk(self) -> None:
        text = _safety_text(1000)
        assert len(_make_chunker().chunk(text)) == 1


class TestWindowInvariants:
    @pytest.mark.parametrize("length", [1001, 2500, 5000, 12345])
    def test_reconstruction_is_exact(self, length: int) -> None:
        text = _safety_text(length)
        spans = _make_chunker().chunk(text)
        assert _rebuild(spans) == text

    @pytest.mark.parametrize("length", [1001, 5000, 12345])
    def test_no_span_exceeds_chunk_size(self, length: int) -> None:
        for span in _make_chunker().chunk(_safety_text(length)):
            assert 0 < len(span.text) <= 1000

    def test_consecutive_spans_share_exact_overlap(self) -> None:
        spans = _make_chunker().chunk(_safety_text(6000))
        for previous, current in zip(spans, spans[1:]):
            assert current.overlap == 200
            assert current.start == previous.end - 200
            assert current.text[:200] == previous.text[-200:]

    def test_indices_are_sequential(self) -> None:
        spans = _make_chunker().chunk(_safety_text(6000))
        assert [span.index for span in spans] == list(range(len(spans)))

    def test_spans_end_on_word_boundaries(self) -> None:
        text = _safety_text(7000)
        spans = _make_chunker().chunk(text)
        for span in spans[:-1]:
            assert span.text[-1].isspace() or text[span.end].isspace()

    def test_deterministic(self) -> None:
        text = _safety_text(4321)
        chunker = _make_chunker()
        assert chunker.chunk(text) == chunker.chunk(text)

    def test_iter_chunks_is_reiterable(self) -> None:
        text = _safety_text(3000)
        chunker = _make_chunker()
        assert list(chunker.iter_chunks(text)) == list(chunker.iter_chunks(text))


class TestBoundaryPolicy:
    def test_unbroken_token_is_hard_cut(self) -> None:
        spans = _make_chunker().chunk("x" * 2500)
        assert [len(span.text) for span in spans] == [1000, 1000, 900]
        assert [span.start for span in spans] == [0, 800, 1600]

    def test_limit_kept_when_it_falls_on_whitespace(self) -> None:
        text = "a" * 999 + " " + "b" * 500
        spans = _make_chunker().chunk(text)
        assert spans[0].text == "a" * 999 + " "

    def test_back_off_to_last_space(self) -> None:
        text = "a" * 900 + " " + "b" * 600
        spans = _make_chunker().chunk(text)
        assert spans[0].text == "a" * 900 + " "
        assert spans[1].start == 901 - 200

    def test_five_thousand_characters_give_six_or_seven_chunks(self) -> None:
        spans = _make_chunker().chunk(_safety_text(5000))
        assert 6 <= len(spans) <= 7

    def test_small_window(self) -> None:
        text = "one two three four five six seven eight nine ten"
        spans = _make_chunker(chunk_size=12, overlap=3).chunk(text)
        assert _rebuild(spans) == text
        assert all(len(span.text) <= 12 for span in spans)
