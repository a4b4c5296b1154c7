"""Retry-with-backoff policy shared by the embedding and generation clients.

A :class:`RetryPolicy` is an immutable description of *how* to retry: how
many attempts, and the backoff curve between them.  ``run()`` executes a
zero-argument coroutine factory under that policy.  Only
:class:`ProviderUnavailableError` instances flagged ``retryable`` are retried
(timeouts and rate limits included); everything else propagates on the first
attempt.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field

from zeb_ai.utils.errors import ProviderUnavailableError
from zeb_ai.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


class RetryPolicy(BaseModel):
    """Exponential backoff: ``min(max_delay, base_delay * multiplier ** (n - 1))``."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Total attempts, first call included.")
    base_delay: float = Field(default=0.5, ge=0.0, description="Delay before the second attempt (s).")
    multiplier: float = Field(default=2.0, ge=1.0, description="Growth factor per attempt.")
    max_delay: float = Field(default=4.0, ge=0.0, description="Upper bound for any single delay (s).")

    def delay_for(self, attempt: int) -> float:
        """Return the sleep before retrying after failed attempt number *attempt* (1-based)."""
        return min(self.max_delay, self.base_delay * self.multiplier ** (attempt - 1))

    async def run(
        self,
        func: Callable[[], Awaitable[_T]],
        *,
        operation: str,
        provider_name: str | None = None,
    ) -> _T:
        """Call *func* until it succeeds, a non-retryable error occurs, or attempts run out."""
        attempt = 1
        while True:
            try:
                return await func()
            except ProviderUnavailableError as exc:
                if not exc.retryable or attempt >= self.max_attempts:
                    raise
                backoff = self.delay_for(attempt)
                _logger.warning(
                    "provider_call_retry",
                    operation=operation,
                    provider=provider_name or exc.provider_name,
                    attempt=attempt,
                    backoff_s=backoff,
                    error=str(exc),
                )
                await asyncio.sleep(backoff)
                attempt += 1


NO_RETRY = RetryPolicy(max_attempts=1)
