"""Unit tests for HTTP status and transport error translation."""

from __future__ import annotations

import httpx
import pytest

from zeb_ai.providers.http_status import raise_for_provider_status, translate_transport_error
from zeb_ai.utils.errors import ProviderTimeoutError, ProviderUnavailableError, RateLimitError


def _response(status: int, text: str = "") -> httpx.Response:
    return httpx.Response(status, text=text, request=httpx.Request("POST", "https://provider.test"))


class TestRaiseForProviderStatus:
    @pytest.mark.parametrize("status", [200, 201, 204])
    def test_success_passes(self, status: int) -> None:
        raise_for_provider_status(_response(status), "voyage")

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_not_retryable(self, status: int) -> None:
        with pytest.raises(ProviderUnavailableError) as exc_info:
            raise_for_provider_status(_response(status, "bad key"), "voyage")
        assert exc_info.value.retryable is False
        assert exc_info.value.provider_name == "voyage"

    @pytest.mark.parametrize("status", [402, 429])
    def test_quota_is_rate_limit(self, status: int) -> None:
        with pytest.raises(RateLimitError):
            raise_for_provider_status(_response(status), "gemini")

    def test_server_error_retryable(self) -> None:
        with pytest.raises(ProviderUnavailableError) as exc_info:
            raise_for_provider_status(_response(502, "bad gateway"), "gemini")
        assert exc_info.value.retryable is True
        assert "502" in exc_info.value.message

    def test_client_error_not_retryable(self) -> None:
        with pytest.raises(ProviderUnavailableError) as exc_info:
            raise_for_provider_status(_response(400, "bad request"), "gemini")
        assert exc_info.value.retryable is False

    def test_detail_truncated(self) -> None:
        with pytest.raises(ProviderUnavailableError) as exc_info:
            raise_for_provider_status(_response(500, "x" * 1000), "gemini")
        assert len(exc_info.value.message) < 300


class TestTranslateTransportError:
    def test_timeout(self) -> None:
        request = httpx.Request("POST", "https://provider.test")
        error = translate_transport_error(httpx.ConnectTimeout("slow", request=request), "voyage")
        assert isinstance(error, ProviderTimeoutError)

    def test_network_error(self) -> None:
        request = httpx.Request("POST", "https://provider.test")
        error = translate_transport_error(httpx.ConnectError("refused", request=request), "voyage")
        assert type(error) is ProviderUnavailableError
        assert error.retryable is True
