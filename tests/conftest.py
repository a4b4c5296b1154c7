"""Shared pytest fixtures for the Zeb AI test suite."""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.interfaces.conversation_store import IConversationStore
from zeb_ai.interfaces.embedding_provider import IEmbeddingProvider
from zeb_ai.interfaces.llm_provider import ILLMProvider
from zeb_ai.pipeline.orchestrator import RAGOrchestrator
from zeb_ai.providers.conversation.sqlite_conversation_store import SQLiteConversationStore
from zeb_ai.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from zeb_ai.providers.extraction.file_text_extractor import FileTextExtractor
from zeb_ai.services.answer_generator import AnswerGenerator
from zeb_ai.services.embedding_client import EmbeddingClient
from zeb_ai.services.ingestion.ingestion_service import IngestionService
from zeb_ai.services.retriever import Retriever
from zeb_ai.utils.errors import ProviderUnavailableError
from zeb_ai.utils.retry import NO_RETRY

EMBEDDING_DIM = 1024

_WORD_RE = re.compile(r"\w+")


# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------


def _hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Deterministic unit vector for *text*: one SHA-256 bucket per word.

    Texts that share words get a positive cosine similarity, so retrieval
    order in tests follows lexical overlap.  Text with no words maps to a
    fixed non-zero vector.
    """
    values = [0.0] * dim
    words = _WORD_RE.findall(text.lower()) or ["<empty>"]
    for word in words:
        digest = hashlib.sha256(word.encode("utf-8")).digest()
        bucket = int.from_bytes(digest[:4], "little") % dim
        sign = 1.0 if digest[4] % 2 == 0 else -1.0
        values[bucket] += sign
    magnitude = math.sqrt(sum(v * v for v in values)) or 1.0
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    Set ``fail`` to make every call raise a non-retryable provider error.
    """

    def __init__(self, dim: int = EMBEDDING_DIM, fail: bool = False) -> None:
        self._dim = dim
        self.fail = fail
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.extend(texts)
        if self.fail:
            raise ProviderUnavailableError(
                message="embedding service down",
                provider_name="mock-embed",
                retryable=False,
            )
        return [_hash_to_vector(t, self._dim) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "mock-embed"

    def is_available(self) -> bool:
        return True


class MockLLMProvider(ILLMProvider):
    """LLM provider that records every prompt and returns a canned answer.

    ``error`` (an exception instance) is raised instead when set.
    """

    def __init__(self, answer: str = "Stay calm and follow the posted evacuation routes.") -> None:
        self.answer = answer
        self.error: Exception | None = None
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.answer

    def get_provider_name(self) -> str:
        return "mock-llm"

    def is_available(self) -> bool:
        return True

    @property
    def last_user_prompt(self) -> str:
        return self.calls[-1]["user_prompt"]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def rag_config() -> RAGConfig:
    """Default RAG configuration with retries disabled for fast tests."""
    return RAGConfig(retry=NO_RETRY)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "zeb_ai_test.db"


# ---------------------------------------------------------------------------
# Providers and stores
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def failing_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider(fail=True)


@pytest.fixture
def mock_llm_provider() -> MockLLMProvider:
    return MockLLMProvider()


@pytest_asyncio.fixture
async def document_store(db_path: Path) -> SQLiteDocumentStore:
    store = SQLiteDocumentStore(db_path=db_path, dimension=EMBEDDING_DIM)
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def conversation_store(db_path: Path) -> SQLiteConversationStore:
    store = SQLiteConversationStore(db_path=db_path)
    await store.initialize()
    return store


# ---------------------------------------------------------------------------
# Assembled services
# ---------------------------------------------------------------------------


def build_components(
    document_store: SQLiteDocumentStore,
    conversation_store: IConversationStore | None,
    embedding_provider: IEmbeddingProvider | None,
    llm_provider: ILLMProvider | None,
    config: RAGConfig,
) -> dict[str, Any]:
    """Wire the real services around the given providers, as ``main._build_all`` does."""
    embedding_client = EmbeddingClient(
        provider=embedding_provider,
        dimension=config.embedding_dimension,
        timeout=config.embedding_timeout,
        retry=config.retry,
    )
    retriever = Retriever(
        store=document_store,
        default_limit=config.retrieval_limit,
        min_similarity=config.min_similarity,
        timeout=config.store_timeout,
    )
    ingestion = IngestionService(
        store=document_store,
        embedding_client=embedding_client,
        config=config,
        extractor=FileTextExtractor(),
    )
    orchestrator = RAGOrchestrator(
        embedding_client=embedding_client,
        retriever=retriever,
        generator=AnswerGenerator(provider=llm_provider, config=config),
        ingestion=ingestion,
        config=config,
        conversations=conversation_store,
    )
    return {
        "document_store": document_store,
        "conversation_store": conversation_store,
        "ingestion_service": ingestion,
        "orchestrator": orchestrator,
        "provider_registry": {
            "llm": llm_provider is not None and llm_provider.is_available(),
            "llm_provider": llm_provider.get_provider_name() if llm_provider else None,
            "embedding": embedding_client.is_available(),
            "embedding_provider": embedding_client.get_provider_name(),
        },
        "rag_config": config,
    }


def build_orchestrator(
    document_store: SQLiteDocumentStore,
    conversation_store: IConversationStore | None,
    embedding_provider: IEmbeddingProvider | None,
    llm_provider: ILLMProvider | None,
    config: RAGConfig,
) -> RAGOrchestrator:
    components = build_components(
        document_store, conversation_store, embedding_provider, llm_provider, config
    )
    return components["orchestrator"]


@pytest.fixture
def components(
    document_store: SQLiteDocumentStore,
    conversation_store: SQLiteConversationStore,
    mock_embedding_provider: MockEmbeddingProvider,
    mock_llm_provider: MockLLMProvider,
    rag_config: RAGConfig,
) -> dict[str, Any]:
    return build_components(
        document_store,
        conversation_store,
        mock_embedding_provider,
        mock_llm_provider,
        rag_config,
    )


@pytest.fixture
def orchestrator(components: dict[str, Any]) -> RAGOrchestrator:
    return components["orchestrator"]


@pytest.fixture
def ingestion_service(components: dict[str, Any]) -> IngestionService:
    return components["ingestion_service"]


@pytest.fixture
def orchestrator_factory(
    document_store: SQLiteDocumentStore,
    conversation_store: SQLiteConversationStore,
    rag_config: RAGConfig,
):
    """Build an orchestrator over the shared stores with custom providers."""

    def _factory(
        embedding_provider: IEmbeddingProvider | None,
        llm_provider: ILLMProvider | None,
        config: RAGConfig | None = None,
        with_conversations: bool = True,
        conversations: IConversationStore | None = None,
    ) -> RAGOrchestrator:
        if conversations is None and with_conversations:
            conversations = conversation_store
        return build_orchestrator(
            document_store,
            conversations,
            embedding_provider,
            llm_provider,
            config or rag_config,
        )

    return _factory


@pytest.fixture
def api_components(
    db_path: Path,
    mock_embedding_provider: MockEmbeddingProvider,
    mock_llm_provider: MockLLMProvider,
    rag_config: RAGConfig,
) -> dict[str, Any]:
    """Uninitialized components shaped like the dict ``main._build_all`` returns."""
    return build_components(
        SQLiteDocumentStore(db_path=db_path, dimension=EMBEDDING_DIM),
        SQLiteConversationStore(db_path=db_path),
        mock_embedding_provider,
        mock_llm_provider,
        rag_config,
    )


@pytest.fixture
def embed_text():
    """Return the deterministic text-to-vector function used by the mock embedder."""
    return _hash_to_vector
