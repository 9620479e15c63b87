"""
Shared test configuration for VaultScrape.

Provides sample pages, a fast scraper configuration (no politeness or
backoff delays) and fakes for the Playwright objects used by the rendering
strategy.
"""

# Standard library imports
import asyncio
import tempfile
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Generator, List, Optional

# Third-party imports
import pytest
import pytest_asyncio

# Local imports
from vaultscrape.config import ScraperConfig
from vaultscrape.models import ImageRef, PageMetadata, ScrapedRecord, Strategy

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


@pytest_asyncio.fixture(autouse=True)
async def cleanup_tasks() -> AsyncGenerator[None, None]:
    """Cancel any task a test leaves running."""
    tasks_before = asyncio.all_tasks()
    yield
    new_tasks = asyncio.all_tasks() - tasks_before

    for task in new_tasks:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


# ============================================================================
# Temporary Directory Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Page Fixtures
# ============================================================================

ARTICLE_BODY = "a" * 200

POST_URL = "https://example.com/post"

POST_HTML = f"<html><head><title>Hello</title></head><body><article><p>{ARTICLE_BODY}</p></article></body></html>"


@pytest.fixture
def post_html() -> str:
    return POST_HTML


@pytest.fixture
def sample_html() -> str:
    """A page exercising every extractor."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Test Article</title>
        <meta name="description" content="Sample article for testing">
        <meta name="author" content="Jane Doe">
        <meta name="robots" content="noindex, nofollow">
        <meta property="og:title" content="OG Test Article">
        <meta property="og:description" content="Sample article description">
        <meta property="og:image" content="https://example.com/og.png">
        <meta name="twitter:card" content="summary_large_image">
        <meta name="twitter:site" content="@example">
        <link rel="canonical" href="https://example.com/articles/test">
        <script type="application/ld+json">{"@type": "Article", "headline": "Test Article"}</script>
        <script type="application/ld+json">{ this is not json }</script>
        <script type="application/ld+json">[{"@type": "BreadcrumbList"}]</script>
    </head>
    <body>
        <header><nav><a href="/">Home</a></nav></header>
        <article>
            <h1>Test Article Title</h1>
            <script>trackVisit();</script>
            <p>This is a sample paragraph with <strong>bold text</strong> and
               <a href="https://example.com">a link</a>. It is long enough to count as content.</p>
            <div class="advertisement">Buy now!</div>
            <aside>Related reading</aside>
            <img src="/images/hero.png" alt="Hero" srcset="/images/hero-2x.png 2x">
            <img data-src="https://cdn.example.com/lazy.png" alt="Lazy">
            <img data-lazy-src="https://cdn.example.com/lazier.png">
            <img src="/images/hero.png" alt="Duplicate hero">
            <img alt="No source">
            <div style="background-image: url('https://cdn.example.com/bg.jpg'); height: 10px"></div>
        </article>
        <footer>Copyright</footer>
    </body>
    </html>
    """


def make_record(
    url: str = POST_URL,
    title: str = "Hello",
    strategy: Strategy = Strategy.STATIC,
    plain_text: Optional[str] = None,
    raw_content: Optional[str] = None,
) -> ScrapedRecord:
    """Build a small record without going through extraction."""
    return ScrapedRecord(
        url=url,
        title=title,
        raw_content=raw_content if raw_content is not None else f"<p>{ARTICLE_BODY}</p>",
        plain_text=plain_text if plain_text is not None else ARTICLE_BODY,
        metadata=PageMetadata(description="desc", open_graph={"title": title}),
        images=(ImageRef(src="https://example.com/a.png", alt="A"),),
        structured_data=({"@type": "Article"},),
        strategy=strategy,
        byte_size=123,
    )


@pytest.fixture
def record() -> ScrapedRecord:
    return make_record()


@pytest.fixture
def record_factory():
    return make_record


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def fast_config() -> ScraperConfig:
    """Scraper configuration with every delay disabled."""
    return ScraperConfig(
        rateLimitDelayMs=0,
        baseDelayMs=0,
        maxRetries=2,
        timeoutMs=5000,
    )


# ============================================================================
# Playwright Fakes
# ============================================================================


class FakeResponse:
    def __init__(self, status: int = 200):
        self.status = status


class FakePage:
    def __init__(
        self,
        html: str,
        live: Optional[Dict[str, Any]] = None,
        goto_error: Optional[BaseException] = None,
        idle_error: Optional[BaseException] = None,
        status: int = 200,
    ):
        self.html = html
        self.live = live or {}
        self.goto_error = goto_error
        self.idle_error = idle_error
        self.status = status
        self.goto_calls: List[Dict[str, Any]] = []
        self.load_states: List[str] = []

    async def goto(self, url: str, **kwargs):
        self.goto_calls.append({"url": url, **kwargs})
        if self.goto_error is not None:
            raise self.goto_error
        return FakeResponse(self.status)

    async def wait_for_load_state(self, state: str, **kwargs):
        self.load_states.append(state)
        if self.idle_error is not None:
            raise self.idle_error

    async def content(self) -> str:
        return self.html

    async def evaluate(self, script: str):
        return self.live


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.init_scripts: List[str] = []
        self.routes: List[str] = []
        self.websocket_routes: List[str] = []
        self.closed = False

    async def add_init_script(self, script: str = None, **kwargs):
        self.init_scripts.append(script)

    async def route(self, pattern, handler):
        self.routes.append(pattern)

    async def route_web_socket(self, pattern, handler):
        self.websocket_routes.append(pattern)

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, context: FakeContext):
        self.context = context
        self.context_options: List[Dict[str, Any]] = []
        self.closed = False

    async def new_context(self, **options) -> FakeContext:
        self.context_options.append(options)
        return self.context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[BaseException] = None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs: List[Dict[str, Any]] = []

    async def launch(self, **kwargs) -> FakeBrowser:
        self.launch_kwargs.append(kwargs)
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    """Stands in for the object yielded by ``async_playwright()``."""

    def __init__(self, page: FakePage, launch_error: Optional[BaseException] = None):
        self.page = page
        self.context = FakeContext(page)
        self.browser = FakeBrowser(self.context)
        self.chromium = FakeChromium(self.browser, launch_error)

    def __call__(self):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fake_playwright(sample_html) -> FakePlaywright:
    return FakePlaywright(FakePage(sample_html))
