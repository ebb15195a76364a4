"""
Retry policy for remote GraphQL calls, built on tenacity.

Only transient failures are retried (the caller decides which exception
types count). Once attempts run out the last exception propagates unchanged
so the caller can translate it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Backoff settings for one class of remote call.

    Attributes:
        max_attempts: Total attempts including the first one
        min_wait: Lower bound of the backoff in seconds
        max_wait: Upper bound of the backoff in seconds
        multiplier: Exponential backoff multiplier
        jitter: Randomise waits (full jitter)
        retry_exceptions: Exception types that trigger another attempt
    """

    max_attempts: int = 3
    min_wait: float = 1
    max_wait: float = 30
    multiplier: float = 2
    jitter: bool = True
    retry_exceptions: tuple[type[BaseException], ...] = (Exception,)

    def retrying_on(self, *exceptions: type[BaseException]) -> "RetryConfig":
        """Copy of this config that retries only the given exception types."""
        return replace(self, retry_exceptions=exceptions)

    def wait_strategy(self) -> wait_base:
        wait_cls = wait_random_exponential if self.jitter else wait_exponential
        return wait_cls(multiplier=self.multiplier, min=self.min_wait, max=self.max_wait)


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    wait = state.next_action.sleep if state.next_action else 0
    logger.warning(
        "Attempt %d failed (%s); retrying in %.1fs",
        state.attempt_number, error or "unknown error", wait,
    )


async def retry_async(
    coro_func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> T:
    """Call `coro_func(*args, **kwargs)` with retries.

    Raises:
        The last exception once `config.max_attempts` is exhausted, or any
        exception not listed in `config.retry_exceptions` immediately
    """
    config = config or RetryConfig()

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=config.wait_strategy(),
        retry=retry_if_exception_type(config.retry_exceptions),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await coro_func(*args, **kwargs)

    raise RuntimeError("retry loop ended without a result")  # pragma: no cover
