# =============================================================================
# core/retry.py  —  Retry with exponential backoff
# =============================================================================
#
# with_retry() re-runs an async callable until it succeeds, the error is not
# retryable, or the attempts run out.  The delay doubles (by default) after
# each failure and never exceeds max_delay.
#
# The gateway routes every HTTP exchange through here with
# BackendConfig.max_retries, which defaults to 0: one attempt, no waiting.
# =============================================================================

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import httpx

from core.errors import BackendError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUSES = {429, 503, 504}


def is_retryable_error(exc: BaseException) -> bool:
    """Transient failures: dropped/timed-out connections, throttling, overload."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, BackendError) and exc.status in RETRYABLE_STATUSES:
        return True

    message = str(exc).lower()
    return "rate limit" in message or "timeout" in message


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 10.0,
    backoff_multiplier: float = 2.0,
    retryable: Callable[[BaseException], bool] = lambda exc: True,
) -> T:
    """Await ``fn()``, retrying up to ``max_retries`` extra times.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt.
        max_retries: Extra attempts after the first one.
        initial_delay: Seconds to wait before the first retry.
        max_delay: Upper bound for any single wait.
        backoff_multiplier: Growth factor applied to the delay after each retry.
        retryable: Predicate deciding whether an exception is worth retrying.

    Returns:
        Whatever ``fn()`` returns on the first successful attempt.

    Raises:
        The last exception when attempts are exhausted or it is not retryable.
    """
    delay = initial_delay
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt >= max_retries or not retryable(exc):
                raise
            attempt += 1
            logger.warning(
                "Attempt %d failed, retrying in %.1fs: %s", attempt, delay, exc
            )
            await asyncio.sleep(delay)
            delay = min(delay * backoff_multiplier, max_delay)
