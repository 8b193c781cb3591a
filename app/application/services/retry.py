"""Bounded retry policy with exponential backoff for transient store failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from app.domain.exceptions import StoreUnavailableException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an async operation up to max_attempts times.

    Only exceptions listed in retry_on are retried; the delay before attempt
    n+1 is backoff_seconds * 2**(n-1). When attempts are exhausted the last
    error is re-raised.
    """

    max_attempts: int = 3
    backoff_seconds: float = 0.2
    retry_on: tuple[type[Exception], ...] = (StoreUnavailableException,)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    async def run[T](self, operation: Callable[[], Awaitable[T]], *, name: str) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except self.retry_on as exc:
                if attempt >= self.max_attempts:
                    logger.warning(
                        "%s failed after %d attempt(s): %s", name, attempt, exc
                    )
                    raise
                delay = self.backoff_seconds * (2 ** (attempt - 1))
                logger.info(
                    "%s attempt %d failed (%s); retrying in %.2fs",
                    name,
                    attempt,
                    type(exc).__name__,
                    delay,
                )
                await self.sleep(delay)
                attempt += 1
