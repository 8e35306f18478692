"""Read cache module."""

from rider_offline.cache.store import CachedEntry, CacheStore

__all__ = ["CacheStore", "CachedEntry"]
