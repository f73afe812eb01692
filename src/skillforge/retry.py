"""Bounded retry with exponential backoff for retryable domain errors."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    retry_on: type[BaseException] | tuple[type[BaseException], ...],
    attempts: int,
    backoff_seconds: float,
    max_backoff_seconds: float = 5.0,
) -> T:
    """Run ``operation`` up to ``attempts`` times, sleeping between failures.

    Only exceptions matching ``retry_on`` are retried. The last one is re-raised
    once the attempts are exhausted.
    """
    backoff = backoff_seconds
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= attempts:
                raise
            logger.info(
                "Retrying after %s (attempt %d/%d, sleeping %.2fs)",
                type(exc).__name__, attempt, attempts, backoff,
            )
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, max_backoff_seconds)
    msg = "attempts must be >= 1"
    raise ValueError(msg)
