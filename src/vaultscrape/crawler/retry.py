"""
Bounded exponential-backoff retry.

``with_retry`` wraps any zero-argument coroutine factory. Every exception is
retried uniformly; once the attempt budget is spent the last error is
re-raised unchanged. There is no sleep after the final attempt.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from ..observability.metrics import METRICS

logger = structlog.get_logger(__name__)

T = TypeVar("T")

JITTER_FACTOR = 0.3


def compute_backoff_delay(attempt: int, base_delay_ms: float, rng: Callable[[], float] = random.random) -> float:
    """
    Delay in milliseconds to wait after failed attempt ``attempt`` (1-based).

    ``base * 2^(attempt-1)`` with symmetric jitter of up to +/-30%, floored at
    ``base`` so the wait is never zero or negative.
    """
    exponential = base_delay_ms * (2 ** (attempt - 1))
    jitter = (rng() - 0.5) * 2 * JITTER_FACTOR * exponential
    return max(exponential + jitter, base_delay_ms)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay_ms: float,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
    label: Optional[str] = None,
) -> T:
    """Run ``operation`` up to ``max_attempts`` times."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            METRICS["retry_attempts"].inc()
            delay_ms = compute_backoff_delay(attempt, base_delay_ms, rng) if attempt < max_attempts else None
            logger.warning(
                "Attempt failed",
                operation=label,
                attempt=attempt,
                max_attempts=max_attempts,
                next_delay_ms=round(delay_ms) if delay_ms is not None else None,
                error=str(e),
                error_type=type(e).__name__,
            )
            if delay_ms is not None:
                await sleep(delay_ms / 1000)

    assert last_error is not None
    raise last_error
