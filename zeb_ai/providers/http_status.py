"""Translate raw HTTP outcomes from REST providers into Zeb AI errors.

Shared by the adapters that speak HTTP directly through ``httpx`` (Voyage
and Gemini) rather than through a vendor SDK.
"""

from __future__ import annotations

import httpx

from zeb_ai.utils.errors import (
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitError,
)

_AUTH_STATUSES = frozenset({401, 403})
_QUOTA_STATUSES = frozenset({402, 429})


def raise_for_provider_status(response: httpx.Response, provider_name: str) -> None:
    """Raise the matching provider error for a non-2xx *response*.

    401/403 are not retryable (credentials will not fix themselves), 429
    becomes :class:`RateLimitError`, everything else is a retryable
    :class:`ProviderUnavailableError`.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    detail = response.text[:200] if response.content else ""
    if status in _AUTH_STATUSES:
        raise ProviderUnavailableError(
            message=f"Authentication rejected (HTTP {status}): {detail}",
            provider_name=provider_name,
            retryable=False,
        )
    if status in _QUOTA_STATUSES:
        raise RateLimitError(
            message=f"Rate limit or quota exceeded (HTTP {status})",
            provider_name=provider_name,
        )
    raise ProviderUnavailableError(
        message=f"HTTP {status}: {detail}",
        provider_name=provider_name,
        retryable=status >= 500,
    )


def translate_transport_error(exc: httpx.HTTPError, provider_name: str) -> ProviderUnavailableError:
    """Return the provider error that corresponds to an httpx transport failure."""
    if isinstance(exc, httpx.TimeoutException):
        return ProviderTimeoutError(
            message=f"Request timed out: {exc}",
            provider_name=provider_name,
        )
    return ProviderUnavailableError(
        message=f"Network error: {exc}",
        provider_name=provider_name,
    )
