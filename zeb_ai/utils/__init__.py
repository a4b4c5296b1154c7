"""Utility modules for Zeb AI.

- **errors** -- Domain exception hierarchy rooted at ZebAIError; provider
  adapters raise the transient subclasses, services translate them into
  typed failure results.
- **concurrency** -- Semaphore-bounded fan-out and per-call deadlines.
- **retry** -- Exponential backoff policy for retryable provider errors.
- **logging** -- structlog setup: coloured console in development, JSON in
  production.
- **text_normalizer** -- Clean-up applied to every ingested document.
"""

# -- Domain exception hierarchy --------------------------------------------
from zeb_ai.utils.errors import (
    ConfigurationError,
    ContentBlockedError,
    ConversationNotFoundError,
    DocumentNotFoundError,
    GenerationError,
    IndexDimensionMismatchError,
    InputValidationError,
    MalformedResponseError,
    PersistenceError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitError,
    ZebAIError,
)

# -- Async concurrency helpers ---------------------------------------------
from zeb_ai.utils.concurrency import throttled_gather, with_timeout

# -- Structured logging setup ----------------------------------------------
from zeb_ai.utils.logging import configure_logging, get_logger

# -- Retry policy ----------------------------------------------------------
from zeb_ai.utils.retry import NO_RETRY, RetryPolicy

# -- Document text clean-up ------------------------------------------------
from zeb_ai.utils.text_normalizer import normalize_text

__all__ = [
    "NO_RETRY",
    "ConfigurationError",
    "ContentBlockedError",
    "ConversationNotFoundError",
    "DocumentNotFoundError",
    "GenerationError",
    "IndexDimensionMismatchError",
    "InputValidationError",
    "MalformedResponseError",
    "PersistenceError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "RateLimitError",
    "RetryPolicy",
    "ZebAIError",
    "configure_logging",
    "get_logger",
    "normalize_text",
    "throttled_gather",
    "with_timeout",
]
