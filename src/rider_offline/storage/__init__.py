"""Persistent key-value storage backends."""

from rider_offline.storage.store import MemoryStore, PersistentStore, SQLiteStore

__all__ = ["MemoryStore", "PersistentStore", "SQLiteStore"]
