"""Knowledge-base ingestion: chunking and the ingestion pipeline."""

from zeb_ai.services.ingestion.chunker import TextChunker
from zeb_ai.services.ingestion.ingestion_service import IngestionService

__all__ = ["IngestionService", "TextChunker"]
