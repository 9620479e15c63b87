"""
Redis-backed result cache with a small in-process front layer.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional

import redis.asyncio as redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from ..models import CacheEntry, ScrapedRecord
from .base import CacheStats

logger = logging.getLogger(__name__)

KEY_PREFIX = "vaultscrape:"


def encode_key(url: str, prefix: str = KEY_PREFIX) -> str:
    """``prefix`` + unpadded base64url of the URL. Distinct URLs never collide."""
    encoded = base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")
    return f"{prefix}{encoded}"


def create_redis_client(redis_url: str) -> redis.Redis:
    safe_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info("Connecting to redis at %s", safe_url)
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry=Retry(ExponentialBackoff(), retries=3),
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )


class RedisCache:
    """
    Entries are stored as JSON under ``encode_key(url)``, carrying the
    record and its ``createdAt`` so every instance ages it from the original
    write. Redis also expires the key itself. Up to ``front_size`` entries
    are kept in process, the oldest-inserted being dropped first. Redis
    failures degrade to a miss on read and a no-op on write.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        *,
        url: str = "redis://localhost:6379/0",
        ttl_ms: Optional[float] = None,
        key_prefix: str = KEY_PREFIX,
        front_size: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.redis_url = url
        self.ttl_ms = ttl_ms
        self.key_prefix = key_prefix
        self.front_size = front_size
        self._clock = clock
        self._front: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = CacheStats()

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = create_redis_client(self.redis_url)
        return self._client

    async def open(self) -> None:
        if self._client is None:
            self._client = create_redis_client(self.redis_url)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _remember(self, url: str, entry: CacheEntry) -> None:
        if self.front_size <= 0:
            return
        self._front.pop(url, None)
        self._front[url] = entry
        while len(self._front) > self.front_size:
            self._front.popitem(last=False)

    def _front_get(self, url: str) -> Optional[ScrapedRecord]:
        entry = self._front.get(url)
        if entry is None:
            return None
        now = self._clock()
        if entry.is_expired(now, self.ttl_ms):
            del self._front[url]
            return None
        entry.last_access_at = now
        entry.access_count += 1
        return entry.data

    async def get(self, url: str) -> Optional[ScrapedRecord]:
        record = self._front_get(url)
        if record is not None:
            self._stats.hits += 1
            return record

        try:
            raw = await self.client.get(encode_key(url, self.key_prefix))
        except redis.RedisError:
            logger.warning("Cache get failed for %s", url, exc_info=True)
            self._stats.misses += 1
            return None

        if raw is None:
            self._stats.misses += 1
            return None

        now = self._clock()
        try:
            entry = self._decode(json.loads(raw), now)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding undecodable cache value for %s", url, exc_info=True)
            self._stats.misses += 1
            return None

        if entry.is_expired(now, self.ttl_ms):
            self._stats.misses += 1
            return None

        entry.last_access_at = now
        entry.access_count += 1
        self._remember(url, entry)
        self._stats.hits += 1
        return entry.data

    @staticmethod
    def _decode(payload: Dict[str, Any], now: float) -> CacheEntry:
        if "data" in payload:
            return CacheEntry.from_dict(payload)
        # Bare record written without bookkeeping
        return CacheEntry(data=ScrapedRecord.from_dict(payload), created_at=now, last_access_at=now)

    async def set(self, url: str, record: ScrapedRecord) -> None:
        now = self._clock()
        entry = CacheEntry(data=record, created_at=now, last_access_at=now)
        payload = json.dumps(entry.to_dict(), ensure_ascii=False)
        px = int(self.ttl_ms) if self.ttl_ms else None
        try:
            await self.client.set(encode_key(url, self.key_prefix), payload, px=px)
        except redis.RedisError:
            logger.warning("Cache set failed for %s", url, exc_info=True)
        self._remember(url, entry)

    async def clear(self) -> None:
        self._front.clear()
        self._stats.reset()
        try:
            async for key in self.client.scan_iter(match=f"{self.key_prefix}*"):
                await self.client.delete(key)
        except redis.RedisError:
            logger.warning("Cache clear failed", exc_info=True)

    def keys(self) -> List[str]:
        """URLs held in the in-process layer."""
        return list(self._front.keys())

    def stats(self) -> Dict[str, Any]:
        return self._stats.as_dict(size=len(self._front), max_size=self.front_size)
