"""Google Gemini LLM provider adapter.

Calls the Generative Language REST API
(``POST /v1beta/models/{model}:generateContent``) through an injected
``httpx.AsyncClient`` and implements :class:`ILLMProvider`.

Differences from the OpenAI / Anthropic adapters:
    - The system prompt travels as ``systemInstruction``, not as a message
    - A blocked prompt shows up as ``promptFeedback.blockReason`` with no
      candidates; a blocked answer shows up as ``finishReason: SAFETY``
    - Candidate content is a list of parts, which are joined
"""

from __future__ import annotations

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from zeb_ai.config.settings import Settings
from zeb_ai.interfaces.llm_provider import ILLMProvider
from zeb_ai.providers.http_status import raise_for_provider_status, translate_transport_error
from zeb_ai.utils.errors import (
    ContentBlockedError,
    MalformedResponseError,
    ProviderUnavailableError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0
_BLOCKING_FINISH_REASONS = frozenset(
    {"SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}
)


class _Part(BaseModel):
    text: str | None = None


class _Content(BaseModel):
    parts: list[_Part] = []
    role: str | None = None


class _Candidate(BaseModel):
    content: _Content | None = None
    finishReason: str | None = None  # noqa: N815


class _PromptFeedback(BaseModel):
    blockReason: str | None = None  # noqa: N815


class _UsageMetadata(BaseModel):
    promptTokenCount: int | None = None  # noqa: N815
    candidatesTokenCount: int | None = None  # noqa: N815


class _GenerateContentResponse(BaseModel):
    candidates: list[_Candidate] = []
    promptFeedback: _PromptFeedback | None = None  # noqa: N815
    usageMetadata: _UsageMetadata | None = None  # noqa: N815


class GeminiLLMProvider(ILLMProvider):
    """LLM provider backed by Google Gemini (``gemini-2.5-flash`` by default)."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_model
        self._url = (
            f"{settings.gemini_base_url.rstrip('/')}/v1beta/models/{self._model}:generateContent"
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_DEFAULT_TIMEOUT))

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a text completion via ``generateContent``."""
        if not self._api_key:
            raise ProviderUnavailableError(
                message="GEMINI_API_KEY is not configured",
                provider_name=self.get_provider_name(),
                retryable=False,
            )

        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}

        try:
            response = await self._client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise translate_transport_error(exc, self.get_provider_name()) from exc

        raise_for_provider_status(response, self.get_provider_name())

        try:
            parsed = _GenerateContentResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MalformedResponseError(
                message=f"Unexpected generateContent payload: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = self._extract_text(parsed)
        logger.info(
            "gemini_completion",
            model=self._model,
            input_tokens=parsed.usageMetadata.promptTokenCount if parsed.usageMetadata else None,
            output_tokens=(
                parsed.usageMetadata.candidatesTokenCount if parsed.usageMetadata else None
            ),
        )
        return text

    def get_provider_name(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _extract_text(self, parsed: _GenerateContentResponse) -> str:
        if parsed.promptFeedback and parsed.promptFeedback.blockReason:
            raise ContentBlockedError(
                message=f"Prompt blocked: {parsed.promptFeedback.blockReason}",
                provider_name=self.get_provider_name(),
            )
        if not parsed.candidates:
            raise MalformedResponseError(
                message="Gemini returned no candidates",
                provider_name=self.get_provider_name(),
            )

        candidate = parsed.candidates[0]
        if candidate.finishReason in _BLOCKING_FINISH_REASONS:
            raise ContentBlockedError(
                message=f"Response blocked: {candidate.finishReason}",
                provider_name=self.get_provider_name(),
            )

        parts = candidate.content.parts if candidate.content else []
        text = "".join(part.text for part in parts if part.text).strip()
        if not text:
            raise MalformedResponseError(
                message="Gemini returned no text content",
                provider_name=self.get_provider_name(),
            )
        return text
