"""Abstract base class for uploaded-file text extraction."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: FileTextExtractor (zeb_ai/providers/extraction/)
class ITextExtractor(ABC):
    """Turns an uploaded file into raw text ahead of normalization."""

    @abstractmethod
    async def extract(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        """Return the raw text of the file.

        Raises
        ------
        zeb_ai.utils.errors.InputValidationError
            If the file type is unsupported or the file cannot be parsed.
        """

    @abstractmethod
    def supported_extensions(self) -> frozenset[str]:
        """Return lower-case extensions (with dot) this extractor handles."""
