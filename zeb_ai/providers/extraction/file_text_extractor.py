"""Raw-text extraction for uploaded knowledge-base files.

PDFs are read page by page with PyMuPDF (``fitz``), Word documents with
python-docx (paragraphs, then table cells), and ``.txt`` / ``.md`` files are
decoded as UTF-8.  Both parsers are synchronous, so they run in a worker
thread via :func:`asyncio.to_thread`.  The output is raw: whitespace and
markup clean-up is the normalizer's job.

Legacy binary ``.doc`` files are rejected; converting them needs
LibreOffice, which is not part of the deployment.
"""

from __future__ import annotations

import asyncio
import io
import zipfile
from pathlib import PurePath

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx.opc.exceptions import PackageNotFoundError

from zeb_ai.interfaces.text_extractor import ITextExtractor
from zeb_ai.utils.errors import InputValidationError

logger = structlog.get_logger(logger_name=__name__)

_PDF = ".pdf"
_DOCX = ".docx"
_PLAIN = frozenset({".txt", ".md", ".markdown"})

_CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "application/pdf": _PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": _DOCX,
    "text/plain": ".txt",
    "text/markdown": ".md",
}


class FileTextExtractor(ITextExtractor):
    """Extracts text from PDF, DOCX and plain-text uploads."""

    def supported_extensions(self) -> frozenset[str]:
        return frozenset({_PDF, _DOCX, *_PLAIN})

    async def extract(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        """Return the raw text of an uploaded file.

        The extension of *filename* decides the parser; *content_type* is
        only consulted when the filename has no extension.
        """
        extension = self._resolve_extension(filename, content_type)
        if not data:
            raise InputValidationError(message=f"Uploaded file {filename!r} is empty")

        if extension == _PDF:
            text = await asyncio.to_thread(self._extract_pdf, data, filename)
        elif extension == _DOCX:
            text = await asyncio.to_thread(self._extract_docx, data, filename)
        else:
            text = data.decode("utf-8", errors="replace")

        logger.info("file_text_extracted", filename=filename, extension=extension, chars=len(text))
        return text

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_extension(self, filename: str, content_type: str | None) -> str:
        extension = PurePath(filename).suffix.lower()
        if not extension and content_type:
            extension = _CONTENT_TYPE_EXTENSIONS.get(content_type.split(";")[0].strip(), "")
        if extension == ".doc":
            raise InputValidationError(
                message="Legacy .doc files are not supported; save the file as .docx or PDF",
            )
        if extension not in self.supported_extensions():
            raise InputValidationError(
                message=f"Unsupported file type {extension or '(none)'!r} for {filename!r}",
            )
        return extension

    @staticmethod
    def _extract_pdf(data: bytes, filename: str) -> str:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (fitz.FileDataError, RuntimeError, ValueError) as exc:
            raise InputValidationError(message=f"Could not read PDF {filename!r}: {exc}") from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", filename=filename)
        return "\n\n".join(pages)

    @staticmethod
    def _extract_docx(data: bytes, filename: str) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
            raise InputValidationError(message=f"Could not read DOCX {filename!r}: {exc}") from exc

        blocks = [para.text for para in document.paragraphs if para.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    blocks.append(" | ".join(cells))
        return "\n\n".join(blocks)
