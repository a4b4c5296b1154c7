"""Text normalization for ingested documents.

Text pulled out of PDFs, DOCX files and admin text boxes arrives with
Windows line endings, HTML entities and tags, non-breaking and zero-width
spaces, stray control characters and runs of blank lines.  Embeddings and
full-text search should see the content, not the formatting, so every
document passes through :func:`normalize_text` before chunking.

``normalize_text`` is idempotent: it repeats a single cleaning pass until
the output stops changing, so ``normalize_text(normalize_text(x)) ==
normalize_text(x)`` holds even for inputs like ``"&amp;lt;b&amp;gt;"`` whose
entities only surface after an earlier decode.
"""

import html
import re
import unicodedata

_LINE_BREAKS = re.compile("\r\n|\r|\u2028|\u2029|\x85")
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_HTML_BLOCK_TAG = re.compile(r"</?(?:p|div|br|li|tr|h[1-6])\b[^<>]*>", re.IGNORECASE)
_HTML_TAG = re.compile(r"</?[A-Za-z][A-Za-z0-9:-]*(?:\s[^<>]*)?/?>")
_EXOTIC_SPACES = re.compile("[\t\xa0\u1680\u2000-\u200a\u202f\u205f\u3000]")
_ZERO_WIDTH = re.compile("[\u200b-\u200d\u2060\ufeff\ufffd]")
_MULTI_SPACE = re.compile(r" {2,}")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_MULTI_NEWLINE = re.compile(r"\n{3,}")


def normalize_text(raw: str) -> str:
    """Clean raw extracted text for chunking, embedding and search.

    Args:
        raw: Text straight from an upload or file extractor.

    Returns:
        Text with normalized line breaks, decoded entities, markup removed,
        control and invalid characters stripped, and whitespace collapsed.
    """
    # Each pass only removes or substitutes characters, so this terminates.
    text = raw
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return text
        text = cleaned


def _clean_once(text: str) -> str:
    text = unicodedata.normalize("NFC", text)
    text = _LINE_BREAKS.sub("\n", text)

    if "&" in text:
        text = html.unescape(text)
    if "<" in text:
        text = _HTML_COMMENT.sub("", text)
        # Block-level tags separate lines; inline tags just disappear.
        text = _HTML_BLOCK_TAG.sub("\n", text)
        text = _HTML_TAG.sub("", text)

    text = _EXOTIC_SPACES.sub(" ", text)
    text = _ZERO_WIDTH.sub("", text)
    text = "".join(ch for ch in text if ch == "\n" or not _is_invalid(ch))

    text = _MULTI_SPACE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _MULTI_NEWLINE.sub("\n\n", text)
    return text.strip()


def _is_invalid(ch: str) -> bool:
    """Control (Cc/Cf), surrogate and unassigned characters are dropped."""
    return unicodedata.category(ch) in ("Cc", "Cf", "Cs", "Cn")
