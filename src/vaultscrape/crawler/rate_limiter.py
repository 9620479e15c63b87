"""
Inter-request delay enforcement.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RequestThrottle:
    """Suspends the caller before each orchestrated dispatch."""

    def __init__(self, sleep: Callable[[float], Awaitable[object]] = asyncio.sleep) -> None:
        self._sleep = sleep
        self.total_waits = 0
        self.total_delay_ms = 0.0

    async def throttle(self, delay_ms: float) -> None:
        if delay_ms <= 0:
            return
        logger.debug("Throttling for %.0fms", delay_ms)
        self.total_waits += 1
        self.total_delay_ms += delay_ms
        await self._sleep(delay_ms / 1000)

    def get_stats(self) -> dict:
        return {"total_waits": self.total_waits, "total_delay_ms": self.total_delay_ms}
