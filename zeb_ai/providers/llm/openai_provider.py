"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.  When
a custom ``openai_base_url`` is configured (TogetherAI, Groq, a local
gateway) the client points at that URL instead of the default endpoint, so
this one adapter covers every provider that speaks the chat-completions
protocol.
"""

from __future__ import annotations

import openai
import structlog

from zeb_ai.config.settings import Settings
from zeb_ai.interfaces.llm_provider import ILLMProvider
from zeb_ai.utils.errors import (
    ContentBlockedError,
    MalformedResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitError,
)

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions API.

    Uses ``gpt-4o-mini`` unless ``openai_text_model`` overrides it.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        # The orchestrator enforces the overall deadline; the client timeout
        # only guards against a hung socket.
        client_kwargs: dict = {
            "api_key": self._api_key or "unset",
            "timeout": openai.Timeout(60.0, connect=5.0),
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

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
        """Generate a text completion via the chat-completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise ProviderTimeoutError(
                message=f"{self._provider_label} timed out: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_label} rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise ProviderUnavailableError(
                message=f"{self._provider_label} rejected credentials: {exc}",
                provider_name=self.get_provider_name(),
                retryable=False,
            ) from exc
        except openai.APIStatusError as exc:
            # Other 4xx responses fail the same way on every attempt.
            raise ProviderUnavailableError(
                message=f"{self._provider_label} returned HTTP {exc.status_code}: {exc}",
                provider_name=self.get_provider_name(),
                retryable=exc.status_code >= 500,
            ) from exc
        except openai.APIError as exc:
            raise ProviderUnavailableError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            raise MalformedResponseError(
                message=f"{self._provider_label} returned no choices",
                provider_name=self.get_provider_name(),
            )
        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ContentBlockedError(
                message=f"{self._provider_label} filtered the response",
                provider_name=self.get_provider_name(),
            )
        content = choice.message.content
        if not content or not content.strip():
            raise MalformedResponseError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
