"""Zeb AI FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and exposes the REST API under ``/api/v1``.

Run locally with ``python -m zeb_ai.main`` or ``uvicorn zeb_ai.main:app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from zeb_ai.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from zeb_ai.api.routes import router as api_router
from zeb_ai.config.loader import build_rag_config, load_config
from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.config.settings import Settings
from zeb_ai.interfaces.embedding_provider import IEmbeddingProvider
from zeb_ai.interfaces.llm_provider import ILLMProvider
from zeb_ai.pipeline.orchestrator import RAGOrchestrator
from zeb_ai.providers.conversation.sqlite_conversation_store import SQLiteConversationStore
from zeb_ai.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from zeb_ai.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from zeb_ai.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider
from zeb_ai.providers.extraction.file_text_extractor import FileTextExtractor
from zeb_ai.providers.llm.anthropic_provider import AnthropicLLMProvider
from zeb_ai.providers.llm.gemini_provider import GeminiLLMProvider
from zeb_ai.providers.llm.openai_provider import OpenAILLMProvider
from zeb_ai.services.answer_generator import AnswerGenerator
from zeb_ai.services.embedding_client import EmbeddingClient
from zeb_ai.services.ingestion.ingestion_service import IngestionService
from zeb_ai.services.retriever import Retriever
from zeb_ai.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------

_LLM_ORDER = ("gemini", "openai", "anthropic")
_EMBEDDING_ORDER = ("voyage", "openai")


def _preference_order(preferred: str, default_order: tuple[str, ...]) -> list[str]:
    preferred = preferred.strip().lower()
    return [preferred, *(name for name in default_order if name != preferred)]


def _build_llm_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> ILLMProvider | None:
    """Return the generative provider named by ``LLM_PROVIDER``.

    Falls back to the first provider with an API key (Gemini -> OpenAI ->
    Anthropic).  Returns ``None`` when no key is set; every answer is then
    the degraded fallback text.
    """
    available = set(app_settings.get_available_llm_providers())
    for name in _preference_order(app_settings.llm_provider, _LLM_ORDER):
        if name not in available:
            continue
        if name == "gemini":
            return GeminiLLMProvider(settings=app_settings, http_client=http_client)
        if name == "openai":
            return OpenAILLMProvider(settings=app_settings)
        if name == "anthropic":
            return AnthropicLLMProvider(settings=app_settings)
    return None


def _build_embedding_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> IEmbeddingProvider | None:
    """Return the embedding provider named by ``EMBEDDING_PROVIDER``.

    Priority when the preferred one has no key: Voyage -> OpenAI.  Returns
    ``None`` if no embedding provider is available; retrieval then runs on
    the lexical index only.
    """
    available = set(app_settings.get_available_embedding_providers())
    for name in _preference_order(app_settings.embedding_provider, _EMBEDDING_ORDER):
        if name not in available:
            continue
        if name == "voyage":
            return VoyageEmbeddingProvider(settings=app_settings, http_client=http_client)
        if name == "openai":
            return OpenAIEmbeddingProvider(settings=app_settings)
    return None


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, rag_config: RAGConfig) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(60.0, connect=5.0))

    # -- Providers --
    llm = _build_llm_provider(app_settings, http_client)
    embedder = _build_embedding_provider(app_settings, http_client)
    document_store = SQLiteDocumentStore(
        db_path=app_settings.database_path,
        dimension=rag_config.embedding_dimension,
    )
    conversation_store = SQLiteConversationStore(db_path=app_settings.database_path)
    extractor = FileTextExtractor()

    # -- Services --
    embedding_client = EmbeddingClient(
        provider=embedder,
        dimension=rag_config.embedding_dimension,
        timeout=rag_config.embedding_timeout,
        retry=rag_config.retry,
    )
    retriever = Retriever(
        store=document_store,
        default_limit=rag_config.retrieval_limit,
        min_similarity=rag_config.min_similarity,
        timeout=rag_config.store_timeout,
    )
    generator = AnswerGenerator(provider=llm, config=rag_config)
    ingestion_service = IngestionService(
        store=document_store,
        embedding_client=embedding_client,
        config=rag_config,
        extractor=extractor,
    )

    # -- Pipeline --
    orchestrator = RAGOrchestrator(
        embedding_client=embedding_client,
        retriever=retriever,
        generator=generator,
        ingestion=ingestion_service,
        config=rag_config,
        conversations=conversation_store,
    )

    provider_registry: dict[str, Any] = {
        "llm": llm is not None and llm.is_available(),
        "llm_provider": llm.get_provider_name() if llm else None,
        "embedding": embedding_client.is_available(),
        "embedding_provider": embedding_client.get_provider_name(),
    }

    return {
        "http_client": http_client,
        "document_store": document_store,
        "conversation_store": conversation_store,
        "ingestion_service": ingestion_service,
        "orchestrator": orchestrator,
        "provider_registry": provider_registry,
        "rag_config": rag_config,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, build_rag_config(config))

    for key, value in components.items():
        setattr(application.state, key, value)

    # Both stores share one SQLite file; each creates only its own tables.
    await components["document_store"].initialize()
    await components["conversation_store"].initialize()

    registry = components["provider_registry"]
    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        llm=registry["llm_provider"],
        embedding=registry["embedding_provider"],
        database=settings.database_path,
    )

    yield

    # -- Shutdown: let in-flight ingestion finish, then close shared httpx client --
    orchestrator: RAGOrchestrator = components["orchestrator"]
    await orchestrator.drain()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Zeb AI API",
        version=_VERSION,
        description=(
            "Campus-safety assistant for ASTU: answers questions grounded in "
            "the university's safety documents and keeps per-user chat history."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "zeb_ai.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
