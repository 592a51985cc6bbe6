"""Bounded exponential backoff for transient failures."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from .constants import DEFAULT_RETRY_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a transient failure is retried.

    ``maximum_attempts`` counts the first attempt, so 3 means one call plus
    at most two retries.
    """

    initial_interval: float = 1.0
    backoff_coefficient: float = 2.0
    maximum_interval: float = 30.0
    maximum_attempts: int = DEFAULT_RETRY_ATTEMPTS

    def __post_init__(self) -> None:
        if self.maximum_attempts < 1:
            raise ValueError("maximum_attempts must be at least 1")
        if self.backoff_coefficient < 1.0:
            raise ValueError("backoff_coefficient must be >= 1.0")

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after the given (1-based) failed attempt."""
        delay = self.initial_interval * (self.backoff_coefficient ** (attempt - 1))
        return min(delay, self.maximum_interval)


def is_retryable(error: BaseException) -> bool:
    return bool(getattr(error, "retryable", False))


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "operation",
    on_retry: Callable[[int, BaseException], None] | None = None,
) -> T:
    """Await ``operation`` until it succeeds or the policy is exhausted.

    Only errors flagged ``retryable`` are retried; anything else propagates
    on the first failure. The last error propagates when attempts run out.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e) or attempt >= policy.maximum_attempts:
                if is_retryable(e):
                    logger.error(f"{description} failed after {attempt} attempts: {e}")
                if hasattr(e, "attempts"):
                    e.attempts = attempt
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{description} failed (attempt {attempt}/{policy.maximum_attempts}), "
                f"retrying in {delay:.2f}s: {e}"
            )
            if on_retry is not None:
                on_retry(attempt, e)
            await asyncio.sleep(delay)
            attempt += 1
