"""Immutable runtime configuration for the RAG and ingestion pipelines.

Built once at startup by :func:`zeb_ai.config.loader.build_rag_config` from
``config/config.yaml`` plus environment overrides, then passed explicitly to
every service constructor.  Nothing below the composition root reads the
environment.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from zeb_ai.utils.retry import RetryPolicy


class RAGConfig(BaseModel):
    """Tunable constants for chunking, retrieval, generation and timeouts."""

    model_config = ConfigDict(frozen=True)

    # --- Ingestion ---
    chunk_size: int = Field(default=1000, gt=0, description="Target characters per chunk.")
    chunk_overlap: int = Field(default=200, ge=0, description="Characters shared by consecutive chunks.")
    chunking_threshold: int = Field(
        default=2000,
        ge=0,
        description="Documents longer than this (after normalization) are chunked.",
    )
    embed_concurrency: int = Field(default=4, ge=1, description="Parallel chunk embedding calls.")
    embedding_dimension: int = Field(default=1024, gt=0, description="Required vector length.")

    # --- Retrieval ---
    retrieval_limit: int = Field(default=3, ge=0, description="Default number of context documents.")
    min_similarity: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Vector hits at or below this score are discarded (0 keeps everything).",
    )

    # --- Generation ---
    max_question_length: int = Field(default=1000, gt=0)
    excerpt_chars: int = Field(default=1000, gt=0, description="Per-document body budget in the prompt.")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1000, gt=0)

    # --- Timeouts (seconds) ---
    embedding_timeout: float = Field(default=10.0, ge=0.0)
    generation_timeout: float = Field(default=30.0, ge=0.0)
    store_timeout: float = Field(default=5.0, ge=0.0)

    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    # --- Persona ---
    assistant_name: str = "Zeb AI"
    institution: str = "ASTU"
    emergency_contacts: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_window(self) -> "RAGConfig":
        if self.chunk_overlap >= self.chunk_size:
            msg = f"chunk_overlap ({self.chunk_overlap}) must be smaller than chunk_size ({self.chunk_size})"
            raise ValueError(msg)
        return self
