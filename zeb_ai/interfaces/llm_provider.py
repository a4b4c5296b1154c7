"""Abstract base class for generative-language providers.

Implementations wrap Google Gemini, OpenAI-compatible chat APIs or the
Anthropic Messages API.  The answer generator only ever sees this
interface, so swapping providers is a configuration change in ``main.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: GeminiLLMProvider, OpenAILLMProvider, AnthropicLLMProvider
# Located in: zeb_ai/providers/llm/
class ILLMProvider(ABC):
    """Contract for the text-generation services behind the answer generator."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system instruction that sets persona and grounding rules.
        user_prompt:
            The user-role content: context documents plus the question.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response, never empty.

        Raises
        ------
        zeb_ai.utils.errors.ProviderUnavailableError
            On auth, quota, network or server errors.
        zeb_ai.utils.errors.ContentBlockedError
            If the provider blocked the prompt or the response.
        zeb_ai.utils.errors.MalformedResponseError
            If the response is empty or cannot be decoded.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"gemini-2.5-flash"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured.

        Must not make a network call.
        """
