"""Unit tests for the embedding provider adapters -- Voyage and OpenAI."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from zeb_ai.config.settings import Settings
from zeb_ai.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from zeb_ai.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider
from zeb_ai.utils.errors import (
    MalformedResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitError,
)


# ======================================================================
# Shared helpers
# ======================================================================

def _settings(**overrides) -> Settings:
    defaults = {
        "_env_file": None,
        "voyage_api_key": "pa-test",
        "voyage_model": "voyage-3-large",
        "voyage_base_url": "https://voyage.test/v1",
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "",
        "embedding_dimension": 3,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _voyage_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _echo_handler(requests: list[dict]):
    """Voyage stub that returns one vector per input, in reverse index order."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append({"body": body, "headers": dict(request.headers), "url": str(request.url)})
        data = [
            {"embedding": [float(i), 0.0, 1.0], "index": i}
            for i in range(len(body["input"]))
        ]
        return httpx.Response(200, json={"data": list(reversed(data)), "usage": {"total_tokens": 7}})

    return handler


# ======================================================================
# Voyage
# ======================================================================


class TestVoyageEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_embed_success_and_ordering(self) -> None:
        requests: list[dict] = []
        async with _voyage_client(_echo_handler(requests)) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            vectors = await provider.embed(["fire", "flood"])

        assert vectors == [[0.0, 0.0, 1.0], [1.0, 0.0, 1.0]]
        sent = requests[0]
        assert sent["url"] == "https://voyage.test/v1/embeddings"
        assert sent["body"]["model"] == "voyage-3-large"
        assert sent["body"]["output_dimension"] == 3
        assert sent["headers"]["authorization"] == "Bearer pa-test"

    @pytest.mark.asyncio
    async def test_batches_at_128(self) -> None:
        requests: list[dict] = []
        async with _voyage_client(_echo_handler(requests)) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            vectors = await provider.embed([f"text {i}" for i in range(130)])

        assert len(vectors) == 130
        assert [len(r["body"]["input"]) for r in requests] == [128, 2]

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        async with _voyage_client(_echo_handler([])) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            assert await provider.embed_single("fire") == [0.0, 0.0, 1.0]

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_request(self) -> None:
        requests: list[dict] = []
        async with _voyage_client(_echo_handler(requests)) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            assert await provider.embed([]) == []
        assert requests == []

    @pytest.mark.asyncio
    async def test_missing_key_not_retryable(self) -> None:
        provider = VoyageEmbeddingProvider(_settings(voyage_api_key=""))
        with pytest.raises(ProviderUnavailableError) as exc_info:
            await provider.embed(["fire"])
        assert exc_info.value.retryable is False
        assert provider.is_available() is False
        await provider.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error_type", "retryable"),
        [
            (401, ProviderUnavailableError, False),
            (429, RateLimitError, True),
            (503, ProviderUnavailableError, True),
            (400, ProviderUnavailableError, False),
        ],
    )
    async def test_http_errors(self, status: int, error_type, retryable: bool) -> None:
        async with _voyage_client(lambda request: httpx.Response(status, text="nope")) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            with pytest.raises(error_type) as exc_info:
                await provider.embed(["fire"])
        assert exc_info.value.retryable is retryable

    @pytest.mark.asyncio
    async def test_malformed_payload(self) -> None:
        async with _voyage_client(lambda request: httpx.Response(200, json={"unexpected": True})) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            with pytest.raises(MalformedResponseError):
                await provider.embed(["fire"])

    @pytest.mark.asyncio
    async def test_count_mismatch(self) -> None:
        payload = {"data": [{"embedding": [1.0, 0.0, 0.0], "index": 0}]}
        async with _voyage_client(lambda request: httpx.Response(200, json=payload)) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            with pytest.raises(MalformedResponseError):
                await provider.embed(["fire", "flood"])

    @pytest.mark.asyncio
    async def test_timeout_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _voyage_client(handler) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            with pytest.raises(ProviderTimeoutError):
                await provider.embed(["fire"])

    @pytest.mark.asyncio
    async def test_network_error_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _voyage_client(handler) as client:
            provider = VoyageEmbeddingProvider(_settings(), http_client=client)
            with pytest.raises(ProviderUnavailableError) as exc_info:
                await provider.embed(["fire"])
        assert exc_info.value.retryable is True

    def test_metadata(self) -> None:
        provider = VoyageEmbeddingProvider(_settings(), http_client=MagicMock(spec=httpx.AsyncClient))
        assert provider.get_provider_name() == "voyage-3-large"
        assert provider.get_dimension() == 3
        assert provider.is_available() is True


# ======================================================================
# OpenAI
# ======================================================================


def _openai_response(vectors: list[list[float]]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=5)
    return response


class TestOpenAIEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_embed_success(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_openai_response([[0.1, 0.2, 0.3]]))

        with patch(
            "zeb_ai.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            vectors = await provider.embed(["fire"])

        assert vectors == [[0.1, 0.2, 0.3]]
        kwargs = mock_client.embeddings.create.await_args.kwargs
        assert kwargs["model"] == "text-embedding-3-large"
        assert kwargs["dimensions"] == 3

    @pytest.mark.asyncio
    async def test_count_mismatch(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_openai_response([]))

        with patch(
            "zeb_ai.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(MalformedResponseError):
                await provider.embed(["fire"])

    @pytest.mark.asyncio
    async def test_api_error_is_retryable(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIError(message="boom", request=MagicMock(), body=None)
        )

        with patch(
            "zeb_ai.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(ProviderUnavailableError) as exc_info:
                await provider.embed(["fire"])
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_rate_limit(self) -> None:
        request = httpx.Request("POST", "https://api.openai.test/v1/embeddings")
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.RateLimitError(
                "slow down",
                response=httpx.Response(429, request=request),
                body=None,
            )
        )

        with patch(
            "zeb_ai.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(RateLimitError):
                await provider.embed(["fire"])

    @pytest.mark.asyncio
    async def test_bad_request_not_retryable(self) -> None:
        request = httpx.Request("POST", "https://api.openai.test/v1/embeddings")
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.BadRequestError(
                "input too long",
                response=httpx.Response(400, request=request),
                body=None,
            )
        )

        with patch(
            "zeb_ai.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(ProviderUnavailableError) as exc_info:
                await provider.embed(["fire"])
        assert exc_info.value.retryable is False

    def test_compatible_endpoint_label(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_base_url="http://gateway.test/v1"))
        assert provider.get_provider_name() == "openai-compatible_embedding"

    def test_availability(self) -> None:
        assert OpenAIEmbeddingProvider(_settings()).is_available() is True
        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False
