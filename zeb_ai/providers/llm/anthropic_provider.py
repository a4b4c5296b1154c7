"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`
via the Claude Messages API.

Key differences from the OpenAI adapter:
    - System prompt is a separate parameter, not a message in the list
    - Response content is a list of blocks, so text blocks are joined
    - ``stop_reason == "refusal"`` marks a blocked answer
"""

from __future__ import annotations

import anthropic
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


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key or "unset", max_retries=0)
        self._model = settings.anthropic_model

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
        """Generate a text completion via the Anthropic Messages API."""
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.APITimeoutError as exc:
            raise ProviderTimeoutError(
                message=f"Anthropic timed out: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.RateLimitError as exc:
            raise RateLimitError(
                message=f"Anthropic rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as exc:
            raise ProviderUnavailableError(
                message=f"Anthropic rejected credentials: {exc}",
                provider_name=self.get_provider_name(),
                retryable=False,
            ) from exc
        except anthropic.APIStatusError as exc:
            raise ProviderUnavailableError(
                message=f"Anthropic returned HTTP {exc.status_code}: {exc}",
                provider_name=self.get_provider_name(),
                retryable=exc.status_code >= 500,
            ) from exc
        except anthropic.APIError as exc:
            raise ProviderUnavailableError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.stop_reason == "refusal":
            raise ContentBlockedError(
                message="Anthropic refused to answer",
                provider_name=self.get_provider_name(),
            )
        text_blocks = [block.text for block in response.content if block.type == "text"]
        result = "\n".join(text_blocks).strip()
        if not result:
            raise MalformedResponseError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return result

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
