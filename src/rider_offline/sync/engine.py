"""Sequential drain of the pending action queue."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping

from rider_offline.errors import StorageError, UnknownActionError
from rider_offline.logging import (
    log_action_dropped,
    log_action_failed,
    log_action_synced,
    log_sync_complete,
    sync_logger,
)
from rider_offline.storage import PersistentStore, keys
from rider_offline.sync.models import ActionType, Clock, PendingAction, to_epoch_ms, utc_now
from rider_offline.sync.queue import ActionQueue

logger = sync_logger()

Executor = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass
class SyncReport:
    """Outcome of a single sync pass."""

    started: bool
    succeeded: int = 0
    retained: int = 0
    dropped: int = 0
    remaining: int | None = None
    finished_at: datetime | None = None


class SyncEngine:
    """Drains the action queue against per-type executors.

    Actions are executed one at a time in FIFO order. A failed action
    consumes one retry and stays queued until its retry count reaches
    max_retries, after which it is dropped. Overlapping run() calls are
    skipped, not queued.

    Example:
        engine = SyncEngine(queue, store, executors, is_online=lambda: True)
        report = await engine.run()
    """

    def __init__(
        self,
        queue: ActionQueue,
        store: PersistentStore,
        executors: Mapping[ActionType, Executor],
        is_online: Callable[[], bool],
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the sync engine.

        Args:
            queue: Queue to drain
            store: Store receiving the last-sync timestamp
            executors: Executor bound to each action type
            is_online: Returns the current connectivity state
            clock: Source of the current time
        """
        self._queue = queue
        self._store = store
        self._executors = dict(executors)
        self._is_online = is_online
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        """Whether a sync pass is currently running."""
        return self._lock.locked()

    async def run(self) -> SyncReport:
        """Run one sync pass. Never raises.

        Returns:
            SyncReport; ``started`` is False when the pass was skipped
        """
        if self._lock.locked() or not self._is_online():
            return SyncReport(started=False)

        async with self._lock:
            try:
                return await self._drain()
            except Exception as e:
                logger.error("Sync pass failed: %s", e, exc_info=True)
                return SyncReport(started=True)

    async def _drain(self) -> SyncReport:
        pending = await self._queue.list()
        if not pending:
            return SyncReport(started=True, remaining=0)

        logger.info("Syncing %d pending actions", len(pending))

        report = SyncReport(started=True)
        retained: list[PendingAction] = []

        for action in pending:
            try:
                await self._execute(action)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                action.retry_count += 1
                log_action_failed(
                    logger,
                    action.id,
                    action.type.value,
                    str(e) or type(e).__name__,
                    action.retry_count,
                    action.max_retries,
                )
                if action.retry_count < action.max_retries:
                    retained.append(action)
                    report.retained += 1
                else:
                    log_action_dropped(logger, action.id, action.type.value, action.max_retries)
                    report.dropped += 1
            else:
                log_action_synced(logger, action.id, action.type.value)
                report.succeeded += 1

        remaining = await self._queue.apply_outcome({a.id for a in pending}, retained)

        finished_at = self._clock()
        try:
            await self._store.set(keys.LAST_SYNC, str(to_epoch_ms(finished_at)))
        except StorageError as e:
            logger.error("Failed to record last sync time: %s", e)

        report.remaining = len(remaining)
        report.finished_at = finished_at
        log_sync_complete(
            logger, report.succeeded, report.retained, report.dropped, report.remaining
        )
        return report

    async def _execute(self, action: PendingAction) -> None:
        executor = self._executors.get(action.type)
        if executor is None:
            raise UnknownActionError(f"No executor bound to {action.type.value}")
        await executor(action.payload)
