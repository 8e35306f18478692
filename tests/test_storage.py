"""Tests for the key-value store backends."""

import asyncio

import pytest

from rider_offline.storage import MemoryStore, SQLiteStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each test runs against both backends."""
    if request.param == "memory":
        yield MemoryStore()
    else:
        sqlite_store = SQLiteStore(tmp_path / "kv.db")
        yield sqlite_store
        asyncio.run(sqlite_store.close())


class TestKeyValueContract:
    """Behaviour shared by every PersistentStore."""

    def test_missing_key_reads_none(self, store):
        """get() of an unknown key returns None at revision 0."""

        async def scenario():
            assert await store.get("missing") is None
            assert await store.get_with_revision("missing") == (None, 0)

        asyncio.run(scenario())

    def test_set_overwrites_and_bumps_revision(self, store):
        """Every write increases the key's revision."""

        async def scenario():
            await store.set("k", "one")
            _, first = await store.get_with_revision("k")
            await store.set("k", "two")
            value, second = await store.get_with_revision("k")
            assert value == "two"
            assert second > first

        asyncio.run(scenario())

    def test_compare_and_set_rejects_stale_revision(self, store):
        """A write based on an outdated read is refused."""

        async def scenario():
            await store.set("k", "base")
            _, revision = await store.get_with_revision("k")

            await store.set("k", "concurrent")

            assert await store.compare_and_set("k", "stale", revision) is False
            assert await store.get("k") == "concurrent"

        asyncio.run(scenario())

    def test_compare_and_set_on_new_key(self, store):
        """Revision 0 matches a key that was never written."""

        async def scenario():
            assert await store.compare_and_set("fresh", "v", 0) is True
            assert await store.get("fresh") == "v"
            assert await store.compare_and_set("fresh", "again", 0) is False

        asyncio.run(scenario())

    def test_remove_keeps_revision_increasing(self, store):
        """A removed key cannot be overwritten with a pre-removal revision."""

        async def scenario():
            await store.set("k", "v")
            _, revision = await store.get_with_revision("k")
            await store.remove("k")

            assert await store.get("k") is None
            assert await store.compare_and_set("k", "stale", revision) is False
            _, current = await store.get_with_revision("k")
            assert await store.compare_and_set("k", "fresh", current) is True

        asyncio.run(scenario())

    def test_multi_remove(self, store):
        """multi_remove clears every listed key and leaves others alone."""

        async def scenario():
            await store.set("a", "1")
            await store.set("b", "2")
            await store.set("c", "3")
            await store.multi_remove(["a", "b", "never-set"])

            assert await store.get("a") is None
            assert await store.get("b") is None
            assert await store.get("c") == "3"

        asyncio.run(scenario())


class TestSQLiteStorePersistence:
    """Durability of the SQLite backend."""

    def test_values_survive_reopen(self, tmp_path):
        """Values written before close are readable after reopening."""
        db_path = tmp_path / "nested" / "kv.db"

        async def scenario():
            store1 = SQLiteStore(db_path)
            await store1.set("@key", '{"a": 1}')
            await store1.close()

            store2 = SQLiteStore(db_path)
            assert await store2.get("@key") == '{"a": 1}'
            await store2.close()

        asyncio.run(scenario())
