"""
Retry Combinator

A small wrapper around tenacity that retries an async operation while a
predicate classifies the raised exception as retryable, sleeping on an
exponential schedule between attempts. The last exception is re-raised once
the retry budget is exhausted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

T = TypeVar("T")

logger = logging.getLogger("semsearch.retry")


def backoff_schedule(max_retries: int, initial_delay: float) -> List[float]:
    """
    Return the delays slept before each retry, e.g. [1.0, 2.0, 4.0].
    """
    return [initial_delay * (2 ** i) for i in range(max_retries)]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[BaseException], bool],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: Optional[str] = None,
) -> T:
    """
    Run ``operation`` and retry it on retryable failures.

    Parameters
    ----------
    operation : Callable[[], Awaitable[T]]
        Zero-argument coroutine factory; called once per attempt.

    is_retryable : Callable[[BaseException], bool]
        Predicate deciding whether an exception warrants another attempt.
        Non-retryable exceptions propagate immediately.

    max_retries : int
        Retries after the first attempt (total attempts = max_retries + 1).

    initial_delay : float
        Delay before the first retry; doubled for each further retry.

    sleep : Callable[[float], Awaitable[None]]
        Sleep implementation, injectable for tests.

    Returns
    -------
    T
        The result of the first successful attempt.
    """
    label = description or getattr(operation, "__name__", "operation")

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "Retrying %s (attempt %d/%d) after %s in %.1fs",
            label,
            state.attempt_number,
            max_retries + 1,
            type(exc).__name__ if exc else "unknown error",
            state.next_action.sleep if state.next_action else 0.0,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(operation)
