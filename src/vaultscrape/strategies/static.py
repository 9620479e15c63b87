"""
Static strategy: a single HTTP fetch parsed without script execution.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Optional

import aiohttp
import structlog

from ..config.config import ScraperConfig
from ..crawler.http import borrow_session
from ..crawler.user_agents import UserAgentRotator
from ..errors import ErrorCategory, ScraperError
from ..extractor.content import build_record
from ..models import ScrapedRecord, Strategy

logger = structlog.get_logger(__name__)


def classify_status(status: int) -> Optional[ErrorCategory]:
    """Failure category for an HTTP status, or None when it is a success."""
    if status in (403, 429):
        return ErrorCategory.BLOCKED
    if status == 404:
        return ErrorCategory.INVALID
    if status >= 400:
        return ErrorCategory.NETWORK
    return None


class StaticStrategy:
    """Fetches HTML with aiohttp and runs the content extractor over it."""

    name = Strategy.STATIC

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        user_agents: Optional[UserAgentRotator] = None,
    ) -> None:
        self.config = config or ScraperConfig()
        self._session = session
        self.user_agents = user_agents or UserAgentRotator(self.config.user_agents)

    def bind_session(self, session: Optional[aiohttp.ClientSession]) -> None:
        self._session = session

    def _headers(self) -> dict:
        return {
            "User-Agent": self.user_agents.get_random_user_agent(),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def _fetch(self, url: str) -> tuple[str, int]:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_ms / 1000)
        try:
            async with borrow_session(self._session) as session:
                async with session.get(url, headers=self._headers(), timeout=timeout, allow_redirects=True) as response:
                    category = classify_status(response.status)
                    if category is not None:
                        raise ScraperError(f"Static fetch failed: HTTP {response.status}", category, url)
                    html = await response.text(errors="replace")
                    return html, response.status
        except asyncio.TimeoutError as e:
            raise ScraperError(
                f"Static fetch timed out after {self.config.timeout_ms:.0f}ms", ErrorCategory.TIMEOUT, url
            ) from e
        except aiohttp.ClientError as e:
            raise ScraperError(f"Static fetch failed: {e}", ErrorCategory.NETWORK, url) from e

    async def scrape(self, url: str) -> ScrapedRecord:
        logger.debug("Static fetch", url=url)
        html, status = await self._fetch(url)

        loop = asyncio.get_running_loop()
        extract = partial(
            build_record,
            html,
            url,
            strategy=self.name,
            max_text_length=self.config.max_text_length,
            status_code=status,
        )
        try:
            return await loop.run_in_executor(None, extract)
        except Exception as e:
            raise ScraperError(f"Static extraction failed: {e}", ErrorCategory.PROCESSING, url) from e
