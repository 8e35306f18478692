"""TTL read cache persisted on the key-value store."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from rider_offline.errors import StorageError
from rider_offline.logging import cache_logger
from rider_offline.storage import PersistentStore, keys
from rider_offline.sync.models import Clock, utc_now

logger = cache_logger()


class CachedEntry(BaseModel):
    """A cached response, valid while ``now < expires_at``."""

    key: str
    data: Any
    created_at: datetime
    expires_at: datetime


CachedEntryList = TypeAdapter(list[CachedEntry])


class CacheStore:
    """Keyed read cache with per-entry expiry.

    All entries live in one JSON array. Expired entries are purged lazily
    when the cache is read. Storage failures are logged and degrade to an
    empty cache; nothing is raised to the caller.
    """

    def __init__(
        self,
        store: PersistentStore,
        default_ttl_minutes: int = 60,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Key-value store holding the cache
            default_ttl_minutes: TTL used when cache_data() gets none
            clock: Source of the current time
        """
        self._store = store
        self._default_ttl_minutes = default_ttl_minutes
        self._clock = clock

    async def _read_all(self) -> list[CachedEntry]:
        raw = await self._store.get(keys.CACHED_DATA)
        if raw is None:
            return []
        try:
            return CachedEntryList.validate_json(raw)
        except ValidationError as e:
            logger.error("Discarding unreadable cache: %s", e)
            return []

    async def _write_all(self, entries: list[CachedEntry]) -> None:
        await self._store.set(keys.CACHED_DATA, CachedEntryList.dump_json(entries).decode())

    async def cache_data(self, key: str, data: Any, ttl_minutes: int | None = None) -> None:
        """Store ``data`` under ``key``, replacing any previous entry.

        Args:
            key: Cache key
            data: JSON-compatible value
            ttl_minutes: Minutes until expiry (default from constructor)
        """
        ttl = self._default_ttl_minutes if ttl_minutes is None else ttl_minutes

        try:
            now = self._clock()
            entry = CachedEntry(
                key=key,
                data=data,
                created_at=now,
                expires_at=now + timedelta(minutes=ttl),
            )
            entries = [e for e in await self.get_cached_data() if e.key != key]
            entries.append(entry)
            await self._write_all(entries)
            logger.debug("Data cached: key=%s, ttl_minutes=%s", key, ttl)
        except StorageError as e:
            logger.error("Failed to cache %s: %s", key, e)
        except PydanticSerializationError as e:
            logger.error("Failed to cache %s: data is not JSON-serializable: %s", key, e)
        except (ValueError, OverflowError) as e:
            logger.error("Failed to cache %s: invalid entry: %s", key, e)

    async def get_cached_data(self, key: str | None = None) -> list[CachedEntry]:
        """Return valid entries for ``key``, or all valid entries.

        Expired entries are removed from the store as a side effect.
        """
        try:
            entries = await self._read_all()
            now = self._clock()
            valid = [e for e in entries if e.expires_at > now]

            if len(valid) != len(entries):
                await self._write_all(valid)
                logger.debug("Purged %d expired cache entries", len(entries) - len(valid))
        except StorageError as e:
            logger.error("Failed to read cache: %s", e)
            return []

        if key is None:
            return valid
        return [e for e in valid if e.key == key]

    async def clear_cache(self, key: str | None = None) -> None:
        """Remove the entry for ``key``, or the whole cache."""
        try:
            if key is None:
                await self._store.remove(keys.CACHED_DATA)
            else:
                entries = await self.get_cached_data()
                await self._write_all([e for e in entries if e.key != key])
            logger.debug("Cache cleared: %s", key or "all")
        except StorageError as e:
            logger.error("Failed to clear cache: %s", e)

    async def is_data_available(self, key: str, online: bool) -> bool:
        """True if online, or if a valid cached entry exists for ``key``."""
        if online:
            return True
        return len(await self.get_cached_data(key)) > 0
