"""Pipeline orchestration for question answering and ingestion."""

from zeb_ai.pipeline.orchestrator import DEGRADED_ANSWER, RAGOrchestrator

__all__ = ["DEGRADED_ANSWER", "RAGOrchestrator"]
