"""Shared concurrency primitives for provider calls.

Two patterns are exposed:

1. **throttled_gather** -- a drop-in replacement for ``asyncio.gather`` that
   wraps each awaitable in a semaphore acquire/release.  The ingestion
   service uses it to embed chunks with bounded fan-out so a large document
   does not trip the embedding provider's rate limit.

2. **with_timeout** -- races one awaitable against a deadline and converts
   ``asyncio.TimeoutError`` into :class:`ProviderTimeoutError`, so a timed-out
   call flows through the same fallback paths as any other provider failure.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import structlog

from zeb_ai.utils.errors import ProviderTimeoutError
from zeb_ai.utils.logging import get_logger

_T = TypeVar("_T")

_DEFAULT_CONCURRENCY = 4

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
    limit: int = _DEFAULT_CONCURRENCY,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  When omitted a fresh
        semaphore of size ``limit`` is created for this call, so no state is
        shared between unrelated callers or event loops.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised, so one failure never cancels its siblings.
    limit:
        Maximum number of awaitables running at once when no semaphore is
        given.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


async def with_timeout(
    awaitable: Awaitable[_T],
    seconds: float,
    provider_name: str | None = None,
    operation: str = "call",
) -> _T:
    """Await *awaitable*, raising :class:`ProviderTimeoutError` past *seconds*.

    A non-positive ``seconds`` disables the deadline.
    """
    if seconds <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        _logger.warning(
            "provider_call_timed_out",
            provider=provider_name,
            operation=operation,
            timeout_s=seconds,
        )
        raise ProviderTimeoutError(
            message=f"{operation} timed out after {seconds:g}s",
            provider_name=provider_name,
        ) from exc
