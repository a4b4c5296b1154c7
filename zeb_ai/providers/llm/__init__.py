"""LLM provider adapters.

Three concrete implementations of ILLMProvider (zeb_ai/interfaces/llm_provider.py):
    - GeminiLLMProvider     -- gemini-2.5-flash over httpx (default)
    - OpenAILLMProvider     -- gpt-4o-mini (also any OpenAI-compatible API)
    - AnthropicLLMProvider  -- Claude via the Messages API

At startup, main.py creates the provider named by ``LLM_PROVIDER`` (falling
back to whichever has an API key) and hands it to the answer generator.
"""

from zeb_ai.providers.llm.anthropic_provider import AnthropicLLMProvider
from zeb_ai.providers.llm.gemini_provider import GeminiLLMProvider
from zeb_ai.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "GeminiLLMProvider", "OpenAILLMProvider"]
