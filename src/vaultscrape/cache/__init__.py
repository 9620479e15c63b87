"""
Result caches keyed by normalized URL.
"""

from __future__ import annotations

from ..config.config import CacheConfig
from .base import ResultCache
from .disk import DiskCache
from .memory import MemoryCache
from .remote import RedisCache, encode_key


def build_cache(config: CacheConfig) -> ResultCache:
    """Instantiate the backend selected by ``config.kind``."""
    if config.kind == "disk":
        return DiskCache(config.path, max_size=config.max_size, ttl_ms=config.ttl_ms)
    if config.kind == "remote":
        return RedisCache(
            url=config.redis_url,
            ttl_ms=config.ttl_ms,
            key_prefix=config.key_prefix,
            front_size=config.front_size,
        )
    return MemoryCache(max_size=config.max_size, ttl_ms=config.ttl_ms)


__all__ = ["DiskCache", "MemoryCache", "RedisCache", "ResultCache", "build_cache", "encode_key"]
