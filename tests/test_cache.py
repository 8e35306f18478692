"""Tests for the TTL read cache."""

import asyncio

from rider_offline.cache import CacheStore
from rider_offline.storage import keys


class Opaque:
    """Value with no JSON representation."""


class TestCacheStore:
    """Storing, expiring and clearing cached entries."""

    def test_round_trip_before_expiry(self, memory_store, clock):
        """Cached data comes back unchanged while the TTL has not elapsed."""
        cache = CacheStore(memory_store, clock=clock)
        jobs = {"jobs": [{"id": "j1", "urgency": "routine"}]}

        async def scenario():
            await cache.cache_data("available_jobs", jobs, ttl_minutes=10)
            clock.advance(minutes=9)
            return await cache.get_cached_data("available_jobs")

        entries = asyncio.run(scenario())
        assert len(entries) == 1
        assert entries[0].key == "available_jobs"
        assert entries[0].data == jobs

    def test_expired_entry_is_purged(self, memory_store, clock):
        """After the TTL, reads return nothing and the store no longer holds the entry."""
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("profile", {"name": "Rider"}, ttl_minutes=5)
            await cache.cache_data("hospitals", ["General"], ttl_minutes=60)
            clock.advance(minutes=5)
            entries = await cache.get_cached_data("profile")
            raw = await memory_store.get(keys.CACHED_DATA)
            return entries, raw

        entries, raw = asyncio.run(scenario())
        assert entries == []
        assert '"profile"' not in raw
        assert '"hospitals"' in raw

    def test_last_write_wins(self, memory_store, clock):
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("stats", {"today": 1})
            await cache.cache_data("stats", {"today": 2})
            return await cache.get_cached_data()

        entries = asyncio.run(scenario())
        assert [e.data for e in entries] == [{"today": 2}]

    def test_default_ttl(self, memory_store, clock):
        """Without a TTL the constructor default applies."""
        cache = CacheStore(memory_store, default_ttl_minutes=30, clock=clock)

        async def scenario():
            await cache.cache_data("k", "v")
            return await cache.get_cached_data("k")

        entries = asyncio.run(scenario())
        assert entries[0].created_at == clock.now
        assert (entries[0].expires_at - clock.now).total_seconds() == 30 * 60

    def test_clear_single_key(self, memory_store, clock):
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("a", 1)
            await cache.cache_data("b", 2)
            await cache.clear_cache("a")
            return await cache.get_cached_data()

        assert [e.key for e in asyncio.run(scenario())] == ["b"]

    def test_clear_everything(self, memory_store, clock):
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("a", 1)
            await cache.clear_cache()
            return await cache.get_cached_data(), await memory_store.get(keys.CACHED_DATA)

        entries, raw = asyncio.run(scenario())
        assert entries == []
        assert raw is None

    def test_corrupt_cache_reads_as_empty(self, memory_store, clock):
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await memory_store.set(keys.CACHED_DATA, "[{broken")
            return await cache.get_cached_data()

        assert asyncio.run(scenario()) == []

    def test_data_availability(self, memory_store, clock):
        """Online always counts as available; offline needs a valid entry."""
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("orders", [], ttl_minutes=1)
            results = [
                await cache.is_data_available("anything", online=True),
                await cache.is_data_available("orders", online=False),
                await cache.is_data_available("profile", online=False),
            ]
            clock.advance(minutes=1)
            results.append(await cache.is_data_available("orders", online=False))
            return results

        assert asyncio.run(scenario()) == [True, True, False, False]

    def test_unserializable_data_is_not_cached(self, memory_store, clock):
        """A value without a JSON form is logged and skipped; existing entries stay."""
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("stats", {"today": 3})
            await cache.cache_data("bad", Opaque())
            return await cache.get_cached_data()

        entries = asyncio.run(scenario())
        assert [(e.key, e.data) for e in entries] == [("stats", {"today": 3})]

    def test_out_of_range_ttl_is_not_cached(self, memory_store, clock):
        cache = CacheStore(memory_store, clock=clock)

        async def scenario():
            await cache.cache_data("profile", {"name": "Rider"}, ttl_minutes=10**12)
            return await cache.get_cached_data()

        assert asyncio.run(scenario()) == []
