"""Custom exception hierarchy for Zeb AI.

All application exceptions inherit from :class:`ZebAIError`, which carries an
optional ``provider_name`` so error handlers can identify which external
service (e.g. "voyage", "gemini", "sqlite") caused the failure.

The hierarchy is organized by how callers react to it:

    ZebAIError  (base -- catch-all for any Zeb AI error)
    +-- ProviderUnavailableError   (auth / quota / network; may be retried)
    |   +-- ProviderTimeoutError   (call exceeded its deadline)
    |   +-- RateLimitError         (provider rate limit exceeded)
    +-- MalformedResponseError     (provider payload empty or unparseable)
    |   +-- ContentBlockedError    (provider refused to produce content)
    +-- InputValidationError       (rejected before any network call)
    +-- DocumentNotFoundError
    +-- ConversationNotFoundError
    +-- PersistenceError           (document / conversation store failure)
    +-- IndexDimensionMismatchError (embedding length differs from index)
    +-- GenerationError            (answer generation failed unrecoverably)
    +-- ConfigurationError         (startup / missing config)

Provider-level errors are absorbed by the services and turned into degraded
behaviour; only validation errors and unrecoverable generation failures
reach the end user.
"""


class ZebAIError(Exception):
    """Base exception for all Zeb AI errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets
    for structured log output, e.g. ``[voyage] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(ZebAIError):
    """Raised when an external provider cannot serve a request.

    Covers authentication failures, exhausted quota, network errors and
    5xx responses.  ``retryable`` is ``False`` for failures that a retry
    cannot fix (bad credentials, missing configuration).
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        return self._retryable


class ProviderTimeoutError(ProviderUnavailableError):
    """Raised when a provider call exceeds its timeout."""

    def __init__(
        self,
        message: str = "External service timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


class RateLimitError(ProviderUnavailableError):
    """Raised when a provider rate limit or quota is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


class MalformedResponseError(ZebAIError):
    """Raised when a provider returns an empty or unparseable payload."""

    def __init__(
        self,
        message: str = "Provider returned a malformed response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ContentBlockedError(MalformedResponseError):
    """Raised when a generative provider blocks the prompt or its output."""

    def __init__(
        self,
        message: str = "Provider blocked the response content",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Caller-facing errors
# ---------------------------------------------------------------------------

class InputValidationError(ZebAIError):
    """Raised when caller input is rejected (empty question, missing fields)."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(ZebAIError):
    """Raised when a document id does not exist in the store."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConversationNotFoundError(ZebAIError):
    """Raised when a conversation does not exist or belongs to another user."""

    def __init__(
        self,
        message: str = "Conversation not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationError(ZebAIError):
    """Raised when answer generation fails in a way no fallback can cover."""

    def __init__(
        self,
        message: str = "Unable to generate an answer right now",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / index errors
# ---------------------------------------------------------------------------

class PersistenceError(ZebAIError):
    """Raised when a document or conversation store operation fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IndexDimensionMismatchError(ZebAIError):
    """Raised when an embedding's length differs from the index dimension."""

    def __init__(
        self,
        message: str = "Embedding dimension does not match the index",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(ZebAIError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
