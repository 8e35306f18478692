"""Offline coordinator wiring connectivity, queue, sync and cache together."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from rider_offline.cache import CachedEntry, CacheStore
from rider_offline.config import DEFAULT_RETRY_POLICIES
from rider_offline.errors import StorageError
from rider_offline.events import Emitter, Listener, Unsubscribe
from rider_offline.logging import log_state_change, state_logger
from rider_offline.monitor import ConnectivityMonitor
from rider_offline.storage import PersistentStore, keys
from rider_offline.sync import ActionQueue, Executor, PendingActionInput, SyncEngine
from rider_offline.sync.models import ActionType, Clock, from_epoch_ms, utc_now

logger = state_logger()


class SyncPhase(Enum):
    """Coordinator state machine phases."""

    ONLINE_IDLE = "online_idle"
    ONLINE_SYNCING = "online_syncing"
    OFFLINE = "offline"


@dataclass(frozen=True)
class OfflineState:
    """Snapshot of the offline engine published to subscribers."""

    is_online: bool
    offline_mode_enabled: bool
    pending_actions_count: int
    last_sync_time: datetime | None
    phase: SyncPhase


class OfflineCoordinator:
    """Single entry point of the offline engine for the rest of the client.

    Persists actions through the ActionQueue, replays them with the
    SyncEngine whenever connectivity returns (once per offline-to-online
    edge) or an action is queued while online, and serves the TTL cache.
    None of the public methods raise; failures are logged and the only
    signal to the application is the published OfflineState.

    Example:
        coordinator = OfflineCoordinator(store, monitor, build_executors(client))
        await coordinator.start()
        unsubscribe = coordinator.subscribe(render_banner)
        await queue_location_update(coordinator, 6.9271, 79.8612)
        ...
        await coordinator.close()
    """

    def __init__(
        self,
        store: PersistentStore,
        connectivity: ConnectivityMonitor,
        executors: Mapping[ActionType, Executor],
        retry_policies: Mapping[str, int] | None = None,
        default_cache_ttl_minutes: int = 60,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Key-value store shared by queue, cache and state flags
            connectivity: Source of online/offline transitions
            executors: Executor bound to each action type
            retry_policies: Max retries per action type name
            default_cache_ttl_minutes: TTL used when cache_data() gets none
            clock: Source of the current time
        """
        self._store = store
        self._connectivity = connectivity
        self.retry_policies = {**DEFAULT_RETRY_POLICIES, **(retry_policies or {})}

        self._queue = ActionQueue(store, clock=clock)
        self._cache = CacheStore(store, default_ttl_minutes=default_cache_ttl_minutes, clock=clock)
        self._engine = SyncEngine(
            self._queue,
            store,
            executors,
            is_online=lambda: self._is_online,
            clock=clock,
        )

        # State
        self._is_online = connectivity.is_connected
        self._phase = SyncPhase.ONLINE_IDLE if self._is_online else SyncPhase.OFFLINE
        self._offline_mode = False
        self._pending_count = 0
        self._last_sync_time: datetime | None = None

        self._emitter: Emitter[OfflineState] = Emitter()
        self._sync_tasks: set[asyncio.Task] = set()
        self._unsubscribe_connectivity: Unsubscribe | None = None

    # --- Lifecycle ---

    async def start(self) -> None:
        """Attach to connectivity changes and load persisted state.

        Connectivity is re-read here; if the monitor came online since
        construction, this counts as a reconnect and starts a sync.
        """
        if self._unsubscribe_connectivity is None:
            self._unsubscribe_connectivity = self._connectivity.subscribe(
                self._handle_connectivity
            )
        await self._load_persisted_state()
        if self._connectivity.is_connected != self._is_online:
            self._handle_connectivity(self._connectivity.is_connected)

    async def close(self) -> None:
        """Detach from connectivity and wait for scheduled syncs to finish."""
        if self._unsubscribe_connectivity is not None:
            self._unsubscribe_connectivity()
            self._unsubscribe_connectivity = None
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every background sync scheduled so far has finished."""
        while self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks))

    async def _load_persisted_state(self) -> None:
        self._pending_count = await self._queue.count()
        try:
            last_sync = await self._store.get(keys.LAST_SYNC)
            offline_mode = await self._store.get(keys.OFFLINE_MODE)
        except StorageError as e:
            logger.error("Failed to load offline state: %s", e)
        else:
            self._last_sync_time = self._parse_last_sync(last_sync)
            self._offline_mode = offline_mode == "true"
        self._notify()

    @staticmethod
    def _parse_last_sync(value: str | None) -> datetime | None:
        if value is None:
            return None
        try:
            return from_epoch_ms(int(value))
        except ValueError:
            logger.warning("Ignoring malformed last sync value: %r", value)
            return None

    # --- State ---

    def get_state(self) -> OfflineState:
        """Return a snapshot of the current offline state."""
        return OfflineState(
            is_online=self._is_online,
            offline_mode_enabled=self._offline_mode,
            pending_actions_count=self._pending_count,
            last_sync_time=self._last_sync_time,
            phase=self._phase,
        )

    def subscribe(self, listener: Listener[OfflineState]) -> Unsubscribe:
        """Register a state listener; it is called at once with the current state.

        Returns:
            Callable that removes the listener
        """
        unsubscribe = self._emitter.subscribe(listener)
        listener(self.get_state())
        return unsubscribe

    def _notify(self) -> None:
        self._emitter.emit(self.get_state())

    def _set_phase(self, phase: SyncPhase, trigger: str) -> None:
        if phase != self._phase:
            log_state_change(logger, self._phase.value, phase.value, trigger=trigger)
            self._phase = phase

    def _handle_connectivity(self, connected: bool) -> None:
        was_online = self._is_online
        self._is_online = connected

        if connected and not was_online:
            self._set_phase(SyncPhase.ONLINE_SYNCING, "reconnected")
            self._schedule_sync()
        elif not connected:
            self._set_phase(SyncPhase.OFFLINE, "disconnected")

        self._notify()

    # --- Queue and sync ---

    def _schedule_sync(self) -> None:
        task = asyncio.create_task(self.sync_pending_actions())
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)

    async def queue_action(self, action_input: PendingActionInput) -> None:
        """Persist an action and, if online, start a sync without awaiting it."""
        await self._queue.enqueue(action_input)
        self._pending_count = await self._queue.count()
        self._notify()

        if self._is_online:
            self._schedule_sync()

    async def sync_pending_actions(self) -> None:
        """Run one sync pass unless one is running or the client is offline."""
        if self._engine.in_progress or not self._is_online:
            return

        self._set_phase(SyncPhase.ONLINE_SYNCING, "sync")
        self._notify()

        report = await self._engine.run()
        if report.finished_at is not None:
            self._last_sync_time = report.finished_at
        self._pending_count = await self._queue.count()

        self._set_phase(
            SyncPhase.ONLINE_IDLE if self._is_online else SyncPhase.OFFLINE,
            "sync_complete",
        )
        self._notify()

    # --- Cache ---

    async def cache_data(self, key: str, data: Any, ttl_minutes: int | None = None) -> None:
        await self._cache.cache_data(key, data, ttl_minutes)

    async def get_cached_data(self, key: str | None = None) -> list[CachedEntry]:
        return await self._cache.get_cached_data(key)

    async def clear_cache(self, key: str | None = None) -> None:
        await self._cache.clear_cache(key)

    async def is_data_available(self, key: str) -> bool:
        """True if online or a valid cached entry exists for ``key``."""
        return await self._cache.is_data_available(key, online=self._is_online)

    # --- Flags and reset ---

    async def set_offline_mode(self, enabled: bool) -> None:
        """Persist the user's offline-mode preference."""
        try:
            await self._store.set(keys.OFFLINE_MODE, "true" if enabled else "false")
        except StorageError as e:
            logger.error("Failed to set offline mode: %s", e)
            return
        self._offline_mode = enabled
        logger.info("Offline mode %s", "enabled" if enabled else "disabled")
        self._notify()

    async def clear_all_offline_data(self) -> None:
        """Remove the queue, the cache, the last sync time and the offline-mode flag."""
        try:
            await self._store.multi_remove(keys.ALL_KEYS)
        except StorageError as e:
            logger.error("Failed to clear offline data: %s", e)
            return
        self._pending_count = 0
        self._last_sync_time = None
        self._offline_mode = False
        logger.info("All offline data cleared")
        self._notify()
