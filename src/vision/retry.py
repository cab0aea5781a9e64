"""Bounded exponential-backoff retry for remote text service calls.

Only rate-limited failures are retried. Invalid credentials and every other
failure are raised on the first attempt.

Example:
    >>> policy = RetryPolicy(max_retries=2, initial_delay_ms=2000)
    >>> text = await call_with_retry(lambda: service_call(), policy)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from src.interfaces.text_service import ErrorKind, TextServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters for rate-limited calls.

    Attributes:
        max_retries: Retries allowed after the first attempt.
        initial_delay_ms: Delay before the first retry.
        multiplier: Backoff factor applied per attempt.
    """

    max_retries: int = 2
    initial_delay_ms: float = 2000.0
    multiplier: float = 2.0

    def delay_seconds(self, attempt: int) -> float:
        """Backoff delay after the given zero-based attempt, in seconds."""
        return self.initial_delay_ms * (self.multiplier ** attempt) / 1000.0


async def call_with_retry(
    api_call: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run an async API call, retrying rate-limited failures with backoff.

    Args:
        api_call: Zero-argument callable returning a fresh awaitable per attempt.
        policy: Retry parameters. Uses defaults if None.
        sleep: Awaitable sleep used between attempts.

    Returns:
        The result of the first successful attempt.

    Raises:
        TextServiceError: Immediately for non rate-limit failures, or the last
            rate-limit error once retries are exhausted.
    """
    policy = policy or RetryPolicy()

    attempt = 0
    while True:
        try:
            return await api_call()
        except TextServiceError as e:
            if e.kind == ErrorKind.INVALID_CREDENTIAL:
                logger.error(f"Remote call rejected the API key: {e}")
                raise
            if not e.retryable:
                raise
            if attempt >= policy.max_retries:
                logger.error(f"Rate limit error after {policy.max_retries} retries: {e}")
                raise

            delay = policy.delay_seconds(attempt)
            attempt += 1
            logger.warning(
                f"Rate limit reached. Retrying in {delay * 1000:.0f}ms... "
                f"(Attempt {attempt}/{policy.max_retries})"
            )
            await sleep(delay)
