"""
Result cache contract shared by every backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..models import ScrapedRecord


@runtime_checkable
class ResultCache(Protocol):
    """Keyed by normalized URL. Records are stored and returned whole."""

    async def get(self, url: str) -> Optional[ScrapedRecord]:
        ...

    async def set(self, url: str, record: ScrapedRecord) -> None:
        ...

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def clear(self) -> None:
        ...

    def keys(self) -> List[str]:
        ...

    def stats(self) -> Dict[str, Any]:
        ...


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0

    def as_dict(self, size: int, max_size: int) -> Dict[str, Any]:
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "total": total,
            "hit_rate": self.hits / total if total else 0.0,
            "size": size,
            "max_size": max_size,
        }
