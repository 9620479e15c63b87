"""
Politeness gate combining robots.txt permission and request throttling.
"""

from __future__ import annotations

from typing import Optional

import aiohttp

from .rate_limiter import RequestThrottle
from .robots_parser import RobotsGate


class PolitenessGate:
    """Single seam the orchestrator uses for robots checks and pacing."""

    def __init__(self, robots: Optional[RobotsGate] = None, throttle: Optional[RequestThrottle] = None) -> None:
        self.robots = robots or RobotsGate()
        self._throttle = throttle or RequestThrottle()

    def bind_session(self, session: Optional[aiohttp.ClientSession]) -> None:
        self.robots.bind_session(session)

    async def check_allowed(self, url: str) -> bool:
        return await self.robots.check_allowed(url)

    async def throttle(self, delay_ms: float) -> None:
        await self._throttle.throttle(delay_ms)
