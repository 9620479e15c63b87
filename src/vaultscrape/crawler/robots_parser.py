"""
robots.txt permission checks.

The rule scan is intentionally minimal: only groups whose ``User-agent``
lines include ``*`` are considered, ``Allow`` lines are ignored, and the
first ``Disallow`` value that prefixes the target path denies the request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit

import aiohttp

from .http import borrow_session

logger = logging.getLogger(__name__)

MAX_ROBOTS_BYTES = 1_000_000
MAX_CACHED_ORIGINS = 1024


def _target_path(url: str) -> str:
    parts = urlsplit(url)
    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"
    return path


def is_path_allowed(robots_txt: str, url: str) -> bool:
    """Scan ``robots_txt`` and decide whether ``url`` may be fetched by ``*``."""
    path = _target_path(url)
    applies = False
    previous_was_agent = False

    for raw_line in robots_txt.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue

        field, value = (part.strip() for part in line.split(":", 1))
        field = field.lower()

        if field == "user-agent":
            # Consecutive User-agent lines share one group
            if previous_was_agent:
                applies = applies or value == "*"
            else:
                applies = value == "*"
            previous_was_agent = True
            continue

        previous_was_agent = False
        if field == "disallow" and applies and value and path.startswith(value):
            return False

    return True


def robots_url_for(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}/robots.txt"


class RobotsGate:
    """
    Fetches and caches robots.txt per origin, keeping at most
    ``max_origins`` files with the least recently used evicted first.

    Any failure to obtain the file (transport error, timeout, non-200) resolves
    to "allowed".
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        cache_ttl: float = 3600.0,
        timeout: float = 10.0,
        max_origins: int = MAX_CACHED_ORIGINS,
    ) -> None:
        self._session = session
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self.max_origins = max_origins
        self._cache: "OrderedDict[str, Tuple[Optional[str], float]]" = OrderedDict()
        self._locks: Dict[str, asyncio.Lock] = {}

    def bind_session(self, session: Optional[aiohttp.ClientSession]) -> None:
        self._session = session

    async def _fetch_robots_txt(self, robots_url: str) -> Optional[str]:
        try:
            async with borrow_session(self._session) as session:
                async with session.get(robots_url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
                    if response.status != 200:
                        logger.debug("No robots.txt at %s (status %s)", robots_url, response.status)
                        return None
                    body = await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Failed to fetch robots.txt %s: %s", robots_url, e)
            return None

        if len(body) > MAX_ROBOTS_BYTES:
            logger.warning("robots.txt at %s is larger than 1MB, skipping", robots_url)
            return None
        return body

    def _cached(self, robots_url: str) -> Tuple[bool, Optional[str]]:
        cached = self._cache.get(robots_url)
        if cached is None or time.monotonic() - cached[1] >= self.cache_ttl:
            return False, None
        self._cache.move_to_end(robots_url)
        return True, cached[0]

    def _store(self, robots_url: str, content: Optional[str]) -> None:
        self._cache[robots_url] = (content, time.monotonic())
        self._cache.move_to_end(robots_url)
        while len(self._cache) > self.max_origins:
            evicted, _ = self._cache.popitem(last=False)
            lock = self._locks.get(evicted)
            if lock is not None and not lock.locked():
                del self._locks[evicted]

    async def _get_robots_txt(self, robots_url: str) -> Optional[str]:
        hit, content = self._cached(robots_url)
        if hit:
            return content

        lock = self._locks.setdefault(robots_url, asyncio.Lock())
        async with lock:
            hit, content = self._cached(robots_url)
            if hit:
                return content
            content = await self._fetch_robots_txt(robots_url)
            self._store(robots_url, content)
            return content

    async def check_allowed(self, url: str) -> bool:
        robots_txt = await self._get_robots_txt(robots_url_for(url))
        if robots_txt is None:
            return True
        allowed = is_path_allowed(robots_txt, url)
        if not allowed:
            logger.info("robots.txt disallows %s", url)
        return allowed

    def clear(self) -> None:
        self._cache.clear()
        for robots_url in [url for url, lock in self._locks.items() if not lock.locked()]:
            del self._locks[robots_url]
