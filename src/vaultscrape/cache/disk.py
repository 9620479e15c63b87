"""
Disk-backed result cache.

The whole cache lives in one JSON document mapping normalized URL to a
cache entry. It is read wholesale on ``load`` and rewritten wholesale on
``save``; entries past their TTL are dropped silently at load time.
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog

from ..models import CacheEntry, ScrapedRecord
from ..utils.atomic import atomic_json_dump
from .memory import MemoryCache

logger = structlog.get_logger(__name__)


class DiskCache(MemoryCache):
    """``MemoryCache`` persisted to a single JSON file."""

    def __init__(
        self,
        path: Path,
        max_size: int = 1000,
        ttl_ms: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(max_size=max_size, ttl_ms=ttl_ms, clock=clock)
        self.path = Path(path)
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError("cache document is not a JSON object")
        return document

    async def load(self) -> int:
        """Replace in-memory state with the persisted document. Returns entries kept."""
        loop = asyncio.get_running_loop()
        try:
            document = await loop.run_in_executor(None, self._read_document)
        except (OSError, ValueError) as e:
            logger.warning("Could not read cache file, starting empty", path=str(self.path), error=str(e))
            document = {}

        now = self._clock()
        entries = []
        dropped = 0
        for url, raw in document.items():
            try:
                entry = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed cache entry", url=url, error=str(e))
                dropped += 1
                continue
            if entry.is_expired(now, self.ttl_ms):
                dropped += 1
                continue
            entries.append((url, entry))

        # Oldest access first so the LRU order survives a restart
        entries.sort(key=lambda item: item[1].last_access_at)
        self._entries.clear()
        for url, entry in entries[-self.max_size:]:
            self._entries[url] = entry

        self._dirty = dropped > 0 or len(entries) > self.max_size
        logger.info("Cache loaded", path=str(self.path), entries=len(self._entries), dropped=dropped)
        return len(self._entries)

    async def save(self) -> bool:
        """Rewrite the document atomically when anything changed since the last save."""
        if not self._dirty:
            return True
        document = {url: entry.to_dict() for url, entry in self._entries.items()}
        saved = await atomic_json_dump(document, self.path)
        if saved:
            self._dirty = False
            logger.debug("Cache saved", path=str(self.path), entries=len(document))
        return saved

    async def open(self) -> None:
        await self.load()

    async def close(self) -> None:
        await self.save()

    def put(self, url: str, record: ScrapedRecord) -> None:
        super().put(url, record)
        self._dirty = True

    async def clear(self) -> None:
        await super().clear()
        self._dirty = True
