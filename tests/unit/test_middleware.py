"""Unit tests for the API middleware stack."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from zeb_ai.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for,
)
from zeb_ai.utils.errors import (
    ConversationNotFoundError,
    DocumentNotFoundError,
    GenerationError,
    InputValidationError,
    PersistenceError,
    ProviderUnavailableError,
)


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    configure_cors(app, allowed_origins=["http://campus.test"])

    @app.get("/ok")
    async def ok() -> dict:
        return {"ok": True}

    @app.get("/invalid")
    async def invalid() -> dict:
        raise InputValidationError(message="Question must not be empty")

    @app.get("/missing")
    async def missing() -> dict:
        raise DocumentNotFoundError(message="Document abc not found")

    @app.get("/provider")
    async def provider() -> dict:
        raise ProviderUnavailableError(message="secret upstream detail", provider_name="gemini")

    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(_app())


class TestStatusFor:
    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (InputValidationError(), 400),
            (DocumentNotFoundError(), 404),
            (ConversationNotFoundError(), 404),
            (GenerationError(), 500),
            (PersistenceError(), 500),
        ],
    )
    def test_mapping(self, exc, status: int) -> None:
        assert status_for(exc) == status


class TestErrorHandlingMiddleware:
    def test_validation_error_keeps_message(self, client: TestClient) -> None:
        response = client.get("/invalid")
        assert response.status_code == 400
        assert response.json() == {
            "error": "InputValidationError",
            "detail": "Question must not be empty",
        }

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Document abc not found"

    def test_server_error_detail_is_generic(self, client: TestClient) -> None:
        response = client.get("/provider")
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "ProviderUnavailableError"
        assert "secret" not in body["detail"]


class TestRequestLoggingMiddleware:
    def test_request_id_echoed(self, client: TestClient) -> None:
        response = client.get("/ok", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client: TestClient) -> None:
        response = client.get("/ok")
        assert len(response.headers["X-Request-ID"]) == 32

    def test_error_responses_carry_request_id(self, client: TestClient) -> None:
        response = client.get("/invalid")
        assert "X-Request-ID" in response.headers


class TestCors:
    def test_allowed_origin(self, client: TestClient) -> None:
        response = client.get("/ok", headers={"Origin": "http://campus.test"})
        assert response.headers["access-control-allow-origin"] == "http://campus.test"

    def test_other_origin_not_echoed(self, client: TestClient) -> None:
        response = client.get("/ok", headers={"Origin": "http://evil.test"})
        assert "access-control-allow-origin" not in response.headers
