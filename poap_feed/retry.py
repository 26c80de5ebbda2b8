"""
Retry Policy - Bounded retries with linear backoff for outbound HTTP.

Applied uniformly to metadata lookups, chat deliveries and webhooks.
A policy is immutable and can be shared between clients.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp

from poap_feed.exceptions import FetchError


logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(error: Exception) -> bool:
    """
    Default retry predicate.

    Retries HTTP status >= 400 and network-level failures.
    """
    if isinstance(error, FetchError):
        if error.status_code is None:
            return True
        return error.status_code >= 400
    return isinstance(error, (aiohttp.ClientError, asyncio.TimeoutError))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration.

    max_retries counts retries after the first attempt, so a call is
    made at most max_retries + 1 times. The n-th retry waits
    n * delay_seconds.
    """
    max_retries: int = 3
    delay_seconds: float = 4.0
    retry_on: Callable[[Exception], bool] = is_transient

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff(self, retry_number: int) -> float:
        """Delay before the given retry (1-based)."""
        return retry_number * self.delay_seconds

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "request",
    ) -> T:
        """
        Run operation, retrying transient failures.

        Raises:
            The last error once retries are exhausted, or immediately
            when the predicate rejects it.
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_attempts):
            if attempt > 0:
                wait_time = self.backoff(attempt)
                logger.warning(
                    f"Retry attempt {attempt}/{self.max_retries} for {description} "
                    f"in {wait_time:.1f}s: {last_error}"
                )
                await asyncio.sleep(wait_time)

            try:
                return await operation()
            except Exception as e:
                if not self.retry_on(e):
                    raise
                last_error = e

        logger.warning(f"Giving up on {description} after {self.max_attempts} attempts")
        raise last_error


NO_RETRY = RetryPolicy(max_retries=0)
