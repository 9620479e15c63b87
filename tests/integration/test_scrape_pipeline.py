"""
End-to-end scrapes through the real orchestrator, static strategy, robots
gate and caches. HTTP is served by aioresponses and the browser by the
Playwright fakes from conftest.
"""

import pytest
from aioresponses import aioresponses
from yarl import URL

from conftest import ARTICLE_BODY, POST_HTML, POST_URL, FakePage, FakePlaywright
from vaultscrape.config import ScraperConfig
from vaultscrape.errors import ErrorCategory
from vaultscrape.extractor.validation import validate_content
from vaultscrape.models import Strategy
from vaultscrape.orchestrator import ScrapeOrchestrator, scrape_many
from vaultscrape.strategies.rendered import RenderingStrategy
from vaultscrape.strategies.static import StaticStrategy

ROBOTS_URL = "https://example.com/robots.txt"


def page_requests(m: aioresponses, url: str = POST_URL) -> int:
    return len(m.requests.get(("GET", URL(url)), []))


@pytest.mark.integration
class TestStaticPipeline:
    @pytest.mark.asyncio
    async def test_static_page_scraped_and_valid(self, fast_config):
        with aioresponses() as m:
            m.get(ROBOTS_URL, status=404)
            m.get(POST_URL, status=200, body=POST_HTML)

            async with ScrapeOrchestrator(fast_config) as orchestrator:
                record = await orchestrator.scrape(POST_URL)

        assert record.title == "Hello"
        assert record.strategy is Strategy.STATIC
        assert record.plain_text == ARTICLE_BODY
        assert record.status_code == 200
        assert validate_content(record).valid

    @pytest.mark.asyncio
    async def test_repeat_scrape_fetches_once(self, fast_config):
        with aioresponses() as m:
            m.get(ROBOTS_URL, status=404)
            m.get(POST_URL, status=200, body=POST_HTML)

            async with ScrapeOrchestrator(fast_config) as orchestrator:
                first = await orchestrator.scrape(POST_URL)
                second = await orchestrator.scrape(POST_URL)

            assert page_requests(m) == 1
            assert page_requests(m, ROBOTS_URL) == 1

        assert second is first
        assert orchestrator.cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_robots_disallow_skips_fetch(self, fast_config):
        with aioresponses() as m:
            m.get(ROBOTS_URL, status=200, body="User-agent: *\nDisallow: /")
            m.get(POST_URL, status=200, body=POST_HTML)

            async with ScrapeOrchestrator(fast_config) as orchestrator:
                outcome = await orchestrator.process(POST_URL)

            assert page_requests(m) == 0

        assert not outcome.success
        assert outcome.category is ErrorCategory.ROBOTS

    @pytest.mark.asyncio
    async def test_disk_cache_survives_restart(self, temp_dir):
        config = ScraperConfig(
            rateLimitDelayMs=0,
            baseDelayMs=0,
            respectRobots=False,
            cache={"kind": "disk", "path": str(temp_dir / "cache.json")},
        )

        with aioresponses() as m:
            m.get(POST_URL, status=200, body=POST_HTML)
            async with ScrapeOrchestrator(config) as orchestrator:
                await orchestrator.scrape(POST_URL)

            async with ScrapeOrchestrator(config) as restarted:
                record = await restarted.scrape(POST_URL)

            assert page_requests(m) == 1

        assert (temp_dir / "cache.json").exists()
        assert record.title == "Hello"


@pytest.mark.integration
class TestRenderingFallback:
    @pytest.mark.asyncio
    async def test_blocked_static_falls_back_to_browser(self, fast_config):
        rendered_html = POST_HTML.replace("<title>Hello</title>", "<title>Rendered</title>")
        playwright = FakePlaywright(FakePage(rendered_html))
        strategies = [
            StaticStrategy(fast_config),
            RenderingStrategy(fast_config, playwright_factory=playwright),
        ]

        with aioresponses() as m:
            m.get(ROBOTS_URL, status=404)
            m.get(POST_URL, status=403, repeat=True)

            async with ScrapeOrchestrator(fast_config, strategies=strategies) as orchestrator:
                record = await orchestrator.scrape(POST_URL)

            assert page_requests(m) == fast_config.max_retries

        assert record.strategy is Strategy.RENDERED
        assert record.title == "Rendered"
        assert playwright.browser.closed

    @pytest.mark.asyncio
    async def test_fallback_disabled_reports_blocked(self, fast_config):
        with aioresponses() as m:
            m.get(ROBOTS_URL, status=404)
            m.get(POST_URL, status=403, repeat=True)

            async with ScrapeOrchestrator(fast_config) as orchestrator:
                outcome = await orchestrator.process(POST_URL)

        assert outcome.category is ErrorCategory.BLOCKED


@pytest.mark.integration
class TestBulk:
    @pytest.mark.asyncio
    async def test_scrape_many_reports_every_url(self):
        config = ScraperConfig(rateLimitDelayMs=0, baseDelayMs=0, maxRetries=1, respectRobots=False)
        events = []

        async def on_event(event):
            events.append(event)

        with aioresponses() as m:
            m.get("https://example.com/a", status=200, body=POST_HTML)
            m.get("https://example.com/b", status=404)
            m.get("https://example.com/c", status=200, body=POST_HTML)

            outcomes = await scrape_many(
                ["https://example.com/a", "https://example.com/b", "https://example.com/c"],
                config,
                concurrency=2,
                on_event=on_event,
            )

        by_url = {o.url: o for o in outcomes}
        assert by_url["https://example.com/a"].success
        assert by_url["https://example.com/c"].record.title == "Hello"
        assert by_url["https://example.com/b"].category is ErrorCategory.INVALID
        assert sorted(e.url for e in events) == sorted(by_url)
