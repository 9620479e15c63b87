"""
Rendering strategy: full headless-browser render via Playwright.

Each call launches its own browser and context; nothing is pooled or shared
between scrapes. The context and browser are closed on every exit path.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from functools import partial
from typing import Any, Callable, Dict, Optional

import structlog
from playwright.async_api import BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.config import ScraperConfig
from ..crawler.user_agents import UserAgentRotator
from ..errors import ErrorCategory, ScraperError
from ..extractor.content import LiveMetadata, build_record
from ..extractor.structured_data import prefixed_meta_map
from ..models import ScrapedRecord, Strategy
from .stealth import LAUNCH_ARGS, apply_stealth, block_side_channels, random_viewport

logger = structlog.get_logger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}

# Reads metadata from the live DOM rather than the serialized HTML
LIVE_METADATA_SCRIPT = """
() => {
    const meta = (key) => {
        const tag = document.querySelector(`meta[name="${key}"], meta[property="${key}"]`);
        return tag ? tag.getAttribute('content') : null;
    };
    const pairs = (selector, attr) => Array.from(document.querySelectorAll(selector))
        .map((el) => [el.getAttribute(attr), el.getAttribute('content')]);
    const h1 = document.querySelector('h1');
    const canonical = document.querySelector('link[rel="canonical"]');
    return {
        title: document.title || null,
        h1: h1 ? h1.textContent : null,
        ogTitle: meta('og:title'),
        description: document.querySelector('meta[name="description"]')?.getAttribute('content') || null,
        ogDescription: meta('og:description'),
        author: document.querySelector('meta[name="author"]')?.getAttribute('content') || null,
        articleAuthor: meta('article:author'),
        canonical: canonical ? canonical.getAttribute('href') : null,
        robots: document.querySelector('meta[name="robots"]')?.getAttribute('content') || null,
        openGraph: pairs('meta[property^="og:"]', 'property'),
        twitter: pairs('meta[name^="twitter:"]', 'name').concat(pairs('meta[property^="twitter:"]', 'property')),
    };
}
"""


def live_metadata_from(payload: Optional[Dict[str, Any]]) -> LiveMetadata:
    payload = payload or {}
    return LiveMetadata(
        title=payload.get("title"),
        h1=payload.get("h1"),
        og_title=payload.get("ogTitle"),
        description=payload.get("description"),
        og_description=payload.get("ogDescription"),
        author=payload.get("author"),
        article_author=payload.get("articleAuthor"),
        canonical=payload.get("canonical") or None,
        robots=payload.get("robots") or None,
        open_graph=prefixed_meta_map(payload.get("openGraph") or [], "og:"),
        twitter_card=prefixed_meta_map(payload.get("twitter") or [], "twitter:"),
    )


class RenderingStrategy:
    """Drives headless Chromium with evasion measures applied."""

    name = Strategy.RENDERED

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        user_agents: Optional[UserAgentRotator] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.config = config or ScraperConfig()
        self.user_agents = user_agents or UserAgentRotator(self.config.user_agents)
        self._playwright_factory = playwright_factory

    def _context_options(self) -> Dict[str, Any]:
        return {
            "user_agent": self.user_agents.get_random_user_agent(),
            "viewport": random_viewport() if self.config.enable_stealth else dict(DEFAULT_VIEWPORT),
            "ignore_https_errors": True,
            "locale": "en-US",
        }

    async def _prepare_context(self, context: BrowserContext) -> None:
        if self.config.enable_stealth:
            await apply_stealth(context)
        if self.config.block_websockets:
            await block_side_channels(context)

    async def _wait_for_network_idle(self, page: Page, url: str) -> None:
        # Advisory only: a partial render is acceptable
        try:
            await page.wait_for_load_state("networkidle", timeout=self.config.timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Network idle wait timed out", url=url)

    async def _render(self, context: BrowserContext, url: str) -> ScrapedRecord:
        page = await context.new_page()
        response = await page.goto(url, wait_until="domcontentloaded", timeout=self.config.timeout_ms)
        await self._wait_for_network_idle(page, url)

        html = await page.content()
        live = live_metadata_from(await page.evaluate(LIVE_METADATA_SCRIPT))
        status = response.status if response is not None else None

        loop = asyncio.get_running_loop()
        extract = partial(
            build_record,
            html,
            url,
            strategy=self.name,
            max_text_length=self.config.max_text_length,
            status_code=status,
            live=live,
        )
        try:
            return await loop.run_in_executor(None, extract)
        except Exception as e:
            raise ScraperError(f"Rendered extraction failed: {e}", ErrorCategory.PROCESSING, url) from e

    async def scrape(self, url: str) -> ScrapedRecord:
        logger.debug("Rendering page", url=url, stealth=self.config.enable_stealth)
        try:
            async with self._playwright_factory() as playwright:
                browser = await playwright.chromium.launch(headless=True, args=list(LAUNCH_ARGS))
                try:
                    context = await browser.new_context(**self._context_options())
                    try:
                        await self._prepare_context(context)
                        return await self._render(context, url)
                    finally:
                        with suppress(PlaywrightError):
                            await context.close()
                finally:
                    with suppress(PlaywrightError):
                        await browser.close()
        except PlaywrightTimeoutError as e:
            raise ScraperError(
                f"Navigation timed out after {self.config.timeout_ms:.0f}ms", ErrorCategory.TIMEOUT, url
            ) from e
        except PlaywrightError as e:
            raise ScraperError(f"Rendering failed: {e}", ErrorCategory.NETWORK, url) from e
