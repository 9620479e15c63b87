"""
Scrape orchestration.

``ScrapeOrchestrator.scrape`` is the single entry point collaborators call.
A scrape walks these states::

    NORMALIZING -> POLITENESS_CHECK -> CACHE_LOOKUP -> CACHE_HIT -> DONE
                                                    -> RATE_LIMIT_WAIT -> STATIC_ATTEMPT
    STATIC_ATTEMPT  -> CACHE_WRITE -> DONE
                    -> RENDER_ATTEMPT (fallback enabled) -> CACHE_WRITE -> DONE
                                                         -> FAILED
                    -> FAILED (fallback disabled)

Each strategy attempt is wrapped in the retry controller; the next strategy
is only tried once the previous one has exhausted its attempts. A robots.txt
disallow fails immediately without touching any strategy.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import aiohttp
import structlog
from structlog.contextvars import bound_contextvars

from .cache import ResultCache, build_cache
from .config.config import ScraperConfig
from .crawler.politeness import PolitenessGate
from .crawler.retry import with_retry
from .crawler.user_agents import UserAgentRotator
from .errors import ErrorCategory, RobotsDisallowedError, ScraperError
from .events import EventCallback, ProgressEvent, emit_event
from .models import ScrapedRecord, ScrapeOutcome, Strategy
from .observability.metrics import METRICS
from .strategies.protocols import ScrapeStrategy
from .strategies.rendered import RenderingStrategy
from .strategies.static import StaticStrategy
from .utils.url import normalize_url

logger = structlog.get_logger(__name__)


class ScrapeState(str, Enum):
    NORMALIZING = "normalizing"
    POLITENESS_CHECK = "politeness_check"
    CACHE_LOOKUP = "cache_lookup"
    CACHE_HIT = "cache_hit"
    RATE_LIMIT_WAIT = "rate_limit_wait"
    STATIC_ATTEMPT = "static_attempt"
    RENDER_ATTEMPT = "render_attempt"
    CACHE_WRITE = "cache_write"
    DONE = "done"
    FAILED = "failed"


def _attempt_state(strategy: ScrapeStrategy) -> ScrapeState:
    return ScrapeState.STATIC_ATTEMPT if strategy.name == Strategy.STATIC else ScrapeState.RENDER_ATTEMPT


def _bind_session(component: object, session: Optional[aiohttp.ClientSession]) -> None:
    bind = getattr(component, "bind_session", None)
    if callable(bind):
        bind(session)


class ScrapeOrchestrator:
    """
    Composes politeness gate, cache, retry controller and strategies.

    The cache, strategies and politeness gate are injected; defaults are
    built from ``config``. Use as an async context manager to share one
    HTTP session across scrapes and to open/close the cache.
    """

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        *,
        cache: Optional[ResultCache] = None,
        strategies: Optional[Sequence[ScrapeStrategy]] = None,
        politeness: Optional[PolitenessGate] = None,
        on_event: Optional[EventCallback] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config or ScraperConfig()
        self.cache = cache if cache is not None else build_cache(self.config.cache)
        self.politeness = politeness or PolitenessGate()
        self.on_event = on_event

        if strategies is None:
            user_agents = UserAgentRotator(self.config.user_agents)
            default: List[ScrapeStrategy] = [StaticStrategy(self.config, user_agents=user_agents)]
            if self.config.use_playwright_fallback:
                default.append(RenderingStrategy(self.config, user_agents=user_agents))
            strategies = default
        if not strategies:
            raise ValueError("At least one scrape strategy is required")
        self.strategies: List[ScrapeStrategy] = list(strategies)

        self._session = session
        self._owns_session = False

    # --- Lifecycle ---

    async def __aenter__(self) -> ScrapeOrchestrator:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        for component in (*self.strategies, self.politeness):
            _bind_session(component, self._session)
        await self.cache.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        try:
            await self.cache.close()
        finally:
            if self._owns_session and self._session is not None:
                await self._session.close()
                for component in (*self.strategies, self.politeness):
                    _bind_session(component, None)
                self._session = None
                self._owns_session = False

    # --- Single URL ---

    async def scrape(self, url: str) -> ScrapedRecord:
        """
        Scrape one URL through the full pipeline.

        Raises:
            InvalidURLError: the input cannot be normalized.
            RobotsDisallowedError: robots.txt forbids the path.
            ScraperError: every configured strategy failed; carries the last error's category.
        """
        log = logger.bind(input_url=url)
        log.debug("Scrape state", state=ScrapeState.NORMALIZING.value)
        normalized = normalize_url(url)
        log = log.bind(url=normalized)

        if self.config.respect_robots:
            log.debug("Scrape state", state=ScrapeState.POLITENESS_CHECK.value)
            if not await self.politeness.check_allowed(normalized):
                log.info("Disallowed by robots.txt", state=ScrapeState.FAILED.value)
                METRICS["scrapes"].labels(strategy="none", outcome=ErrorCategory.ROBOTS.value).inc()
                raise RobotsDisallowedError(normalized)

        log.debug("Scrape state", state=ScrapeState.CACHE_LOOKUP.value)
        cached = await self.cache.get(normalized)
        if cached is not None:
            METRICS["cache_requests"].labels(result="hit").inc()
            log.info("Cache hit", state=ScrapeState.CACHE_HIT.value)
            return cached
        METRICS["cache_requests"].labels(result="miss").inc()

        log.debug("Scrape state", state=ScrapeState.RATE_LIMIT_WAIT.value)
        await self.politeness.throttle(self.config.rate_limit_delay_ms)

        started = time.perf_counter()
        record = await self._run_strategies(normalized, log)
        elapsed = time.perf_counter() - started
        METRICS["scrape_duration"].observe(elapsed)
        record = record.with_observability(processing_time_ms=round(elapsed * 1000, 3))

        log.debug("Scrape state", state=ScrapeState.CACHE_WRITE.value)
        await self.cache.set(normalized, record)

        log.info("Scrape complete", state=ScrapeState.DONE.value, strategy=record.strategy.value, title=record.title)
        return record

    async def _run_strategies(self, url: str, log) -> ScrapedRecord:
        last_error: Optional[ScraperError] = None

        for strategy in self.strategies:
            state = _attempt_state(strategy)
            if last_error is not None:
                log.warning(
                    "Falling back to next strategy",
                    strategy=strategy.name.value,
                    previous_category=last_error.category.value,
                    previous_error=last_error.message,
                )
            log.debug("Scrape state", state=state.value, strategy=strategy.name.value)

            try:
                record = await with_retry(
                    lambda: strategy.scrape(url),
                    self.config.max_retries,
                    self.config.base_delay_ms,
                    label=strategy.name.value,
                )
            except ScraperError as e:
                last_error = e
            except Exception as e:
                last_error = ScraperError(f"{strategy.name.value} strategy failed: {e}", ErrorCategory.PROCESSING, url)
                last_error.__cause__ = e
            else:
                METRICS["scrapes"].labels(strategy=strategy.name.value, outcome="success").inc()
                return record

            METRICS["scrapes"].labels(strategy=strategy.name.value, outcome=last_error.category.value).inc()
            log.warning(
                "Strategy exhausted",
                strategy=strategy.name.value,
                attempts=self.config.max_retries,
                category=last_error.category.value,
                error=last_error.message,
            )

        assert last_error is not None
        log.error("Scrape failed", state=ScrapeState.FAILED.value, category=last_error.category.value)
        raise last_error

    async def process(self, url: str) -> ScrapeOutcome:
        """Scrape ``url`` and report exactly one outcome, never raising for scrape failures."""
        with bound_contextvars(scrape_url=url):
            try:
                outcome = ScrapeOutcome.succeeded(url, await self.scrape(url))
            except ScraperError as e:
                outcome = ScrapeOutcome.failed(url, e)
            except Exception as e:
                logger.exception("Unexpected scrape failure", url=url)
                outcome = ScrapeOutcome.failed(url, e)

            await emit_event(self.on_event, ProgressEvent.from_outcome(outcome))
            return outcome

    # --- Bulk ---

    async def scrape_many(self, urls: Iterable[str], concurrency: Optional[int] = None) -> List[ScrapeOutcome]:
        """
        Drain ``urls`` with a fixed pool of workers.

        Results come back in completion order; match them to inputs by
        ``ScrapeOutcome.url``. One URL's failure never affects the others.
        """
        queue: asyncio.Queue[str] = asyncio.Queue()
        for url in urls:
            queue.put_nowait(url)

        worker_count = min(concurrency or self.config.concurrency, queue.qsize())
        outcomes: List[ScrapeOutcome] = []

        async def worker(worker_id: int) -> None:
            while True:
                try:
                    url = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    outcomes.append(await self.process(url))
                finally:
                    queue.task_done()

        logger.info("Bulk scrape started", urls=queue.qsize(), workers=worker_count)
        await asyncio.gather(*(worker(i) for i in range(worker_count)))
        logger.info(
            "Bulk scrape finished",
            succeeded=sum(1 for o in outcomes if o.success),
            failed=sum(1 for o in outcomes if not o.success),
        )
        return outcomes


async def scrape_many(
    urls: Iterable[str],
    config: Optional[ScraperConfig] = None,
    *,
    concurrency: Optional[int] = None,
    on_event: Optional[EventCallback] = None,
) -> List[ScrapeOutcome]:
    """Convenience wrapper running a bulk scrape with a default orchestrator."""
    async with ScrapeOrchestrator(config, on_event=on_event) as orchestrator:
        return await orchestrator.scrape_many(urls, concurrency=concurrency)
