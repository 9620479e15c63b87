"""
In-memory LRU result cache with optional TTL.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional

from ..models import CacheEntry, ScrapedRecord
from .base import CacheStats

logger = logging.getLogger(__name__)


class MemoryCache:
    """
    Bounded map from normalized URL to record.

    Entries are kept in access order, so the front of the map is always the
    least recently used entry and is the one evicted on overflow. Expiry is
    measured from creation and applied lazily on ``get``.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_ms: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = CacheStats()

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    def get_entry(self, url: str) -> Optional[CacheEntry]:
        entry = self._entries.get(url)
        if entry is None:
            self._stats.misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now, self.ttl_ms):
            del self._entries[url]
            self._stats.misses += 1
            logger.debug("Expired cache entry dropped: %s", url)
            return None

        entry.last_access_at = now
        entry.access_count += 1
        self._entries.move_to_end(url)
        self._stats.hits += 1
        return entry

    def put(self, url: str, record: ScrapedRecord) -> None:
        now = self._clock()
        if url in self._entries:
            self._entries.move_to_end(url)
        else:
            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted least recently used entry: %s", evicted)
        self._entries[url] = CacheEntry(data=record, created_at=now, last_access_at=now)

    async def get(self, url: str) -> Optional[ScrapedRecord]:
        entry = self.get_entry(url)
        return entry.data if entry is not None else None

    async def set(self, url: str, record: ScrapedRecord) -> None:
        self.put(url, record)

    async def clear(self) -> None:
        self._entries.clear()
        self._stats.reset()

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def stats(self) -> Dict[str, Any]:
        return self._stats.as_dict(size=len(self._entries), max_size=self.max_size)
