"""Uploaded-file text extraction."""

from zeb_ai.providers.extraction.file_text_extractor import FileTextExtractor

__all__ = ["FileTextExtractor"]
