"""Unit tests for the in-memory LRU cache."""

import pytest
from vaultscrape.cache import MemoryCache, ResultCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.mark.unit
class TestMemoryCache:
    def test_satisfies_cache_protocol(self):
        assert isinstance(MemoryCache(), ResultCache)

    @pytest.mark.asyncio
    async def test_set_then_get_returns_same_record(self, record):
        cache = MemoryCache()
        await cache.set(record.url, record)

        assert await cache.get(record.url) is record
        assert await cache.get(record.url) is record

    @pytest.mark.asyncio
    async def test_miss_returns_none(self):
        cache = MemoryCache()
        assert await cache.get("https://example.com/missing") is None
        assert cache.stats()["misses"] == 1

    @pytest.mark.asyncio
    async def test_evicts_least_recently_accessed(self, record_factory):
        clock = FakeClock()
        cache = MemoryCache(max_size=3, clock=clock)
        urls = [f"https://example.com/{i}" for i in range(4)]

        for url in urls[:3]:
            await cache.set(url, record_factory(url=url))
            clock.advance(1)

        # Touch the oldest two so that /2 becomes least recently used
        await cache.get(urls[0])
        clock.advance(1)
        await cache.get(urls[1])
        clock.advance(1)

        await cache.set(urls[3], record_factory(url=urls[3]))

        assert urls[2] not in cache
        assert cache.keys() == [urls[0], urls[1], urls[3]]

    @pytest.mark.asyncio
    async def test_most_recently_accessed_survives_eviction(self, record_factory):
        cache = MemoryCache(max_size=2)
        await cache.set("https://a.test/", record_factory(url="https://a.test/"))
        await cache.set("https://b.test/", record_factory(url="https://b.test/"))
        await cache.get("https://a.test/")

        await cache.set("https://c.test/", record_factory(url="https://c.test/"))

        assert "https://a.test/" in cache
        assert "https://b.test/" not in cache
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_overwrite_does_not_evict(self, record_factory):
        cache = MemoryCache(max_size=2)
        await cache.set("https://a.test/", record_factory(url="https://a.test/", title="One"))
        await cache.set("https://b.test/", record_factory(url="https://b.test/"))
        replacement = record_factory(url="https://a.test/", title="Two")

        await cache.set("https://a.test/", replacement)

        assert len(cache) == 2
        assert await cache.get("https://a.test/") is replacement

    @pytest.mark.asyncio
    async def test_ttl_expiry_from_creation(self, record):
        clock = FakeClock()
        cache = MemoryCache(ttl_ms=5000, clock=clock)
        await cache.set(record.url, record)

        clock.advance(4)
        assert await cache.get(record.url) is record

        # Access does not extend the lifetime
        clock.advance(2)
        assert await cache.get(record.url) is None
        assert record.url not in cache

    @pytest.mark.asyncio
    async def test_access_bookkeeping(self, record):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        await cache.set(record.url, record)
        clock.advance(3)

        entry = cache.get_entry(record.url)

        assert entry.access_count == 1
        assert entry.last_access_at == clock.now
        assert entry.created_at == clock.now - 3

    @pytest.mark.asyncio
    async def test_stats_and_clear(self, record):
        cache = MemoryCache(max_size=10)
        await cache.set(record.url, record)
        await cache.get(record.url)
        await cache.get("https://example.com/other")

        assert cache.stats() == {
            "hits": 1,
            "misses": 1,
            "total": 2,
            "hit_rate": 0.5,
            "size": 1,
            "max_size": 10,
        }

        await cache.clear()
        assert cache.stats()["size"] == 0
        assert cache.stats()["total"] == 0

    def test_rejects_invalid_size(self):
        with pytest.raises(ValueError):
            MemoryCache(max_size=0)
