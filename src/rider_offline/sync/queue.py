"""Durable FIFO queue of pending actions on the key-value store."""

from __future__ import annotations

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from rider_offline.errors import StorageDecodeError, StorageError
from rider_offline.logging import log_action_queued, sync_logger
from rider_offline.storage import PersistentStore, keys
from rider_offline.sync.models import (
    Clock,
    PendingAction,
    PendingActionInput,
    PendingActionList,
    utc_now,
)

logger = sync_logger()


class ActionQueue:
    """Persistent queue of mutations waiting for connectivity.

    The whole queue is stored as one JSON array under a single key. Writes go
    through compare_and_set() on the key's revision, so an enqueue that lands
    while a sync pass is executing actions is merged rather than overwritten.
    The queue persists across client restarts.
    """

    MAX_WRITE_ATTEMPTS = 5

    def __init__(self, store: PersistentStore, clock: Clock = utc_now) -> None:
        """Initialize the action queue.

        Args:
            store: Key-value store holding the queue
            clock: Source of the current time for new records
        """
        self._store = store
        self._clock = clock

    @staticmethod
    def _decode(raw: str | None) -> list[PendingAction]:
        if raw is None:
            return []
        try:
            return PendingActionList.validate_json(raw)
        except ValidationError as e:
            raise StorageDecodeError(f"Malformed pending action list: {e}") from e

    @staticmethod
    def _encode(actions: list[PendingAction]) -> str:
        return PendingActionList.dump_json(actions).decode()

    async def _load(self) -> tuple[list[PendingAction], int]:
        """Read the queue and its revision, treating corrupt data as empty."""
        raw, revision = await self._store.get_with_revision(keys.PENDING_ACTIONS)
        try:
            return self._decode(raw), revision
        except StorageDecodeError as e:
            logger.error("Discarding unreadable pending actions: %s", e)
            return [], revision

    async def enqueue(self, action_input: PendingActionInput) -> PendingAction:
        """Append an action to the queue.

        Never raises: if persistence fails the error is logged and the
        record is still returned.

        Args:
            action_input: Type, payload, route and retry bound of the action

        Returns:
            The stored record with its generated id
        """
        action = PendingAction.create(action_input, self._clock())

        try:
            for _ in range(self.MAX_WRITE_ATTEMPTS):
                actions, revision = await self._load()
                actions.append(action)
                if await self._store.compare_and_set(
                    keys.PENDING_ACTIONS, self._encode(actions), revision
                ):
                    log_action_queued(logger, action.id, action.type.value, len(actions))
                    return action
            logger.error(
                "Failed to enqueue action %s: queue kept changing during write", action.id
            )
        except StorageError as e:
            logger.error("Failed to enqueue action %s: %s", action.id, e)
        except PydanticSerializationError as e:
            logger.error(
                "Failed to enqueue action %s: payload is not JSON-serializable: %s", action.id, e
            )

        return action

    async def list(self) -> list[PendingAction]:
        """Return all pending actions in FIFO order.

        Never raises; unreadable storage yields an empty list.
        """
        try:
            actions, _ = await self._load()
            return actions
        except StorageError as e:
            logger.error("Failed to read pending actions: %s", e)
            return []

    async def count(self) -> int:
        """Return the number of pending actions."""
        return len(await self.list())

    async def replace(self, actions: list[PendingAction]) -> None:
        """Overwrite the queue wholesale.

        Raises:
            StorageError: If the write fails
        """
        await self._store.set(keys.PENDING_ACTIONS, self._encode(actions))

    async def apply_outcome(
        self,
        processed_ids: set[str],
        retained: list[PendingAction],
    ) -> list[PendingAction]:
        """Merge the result of a sync pass into the current queue.

        Actions in ``processed_ids`` are removed unless they appear in
        ``retained``, in which case the retained copy (with its updated retry
        count) takes their place. Actions appended since the pass read the
        queue are kept in order after them.

        Args:
            processed_ids: Ids of every action the pass attempted
            retained: Attempted actions that stay queued for another pass

        Returns:
            The queue as written

        Raises:
            StorageError: If the write fails or keeps conflicting
        """
        retained_by_id = {action.id: action for action in retained}

        for _ in range(self.MAX_WRITE_ATTEMPTS):
            current, revision = await self._load()
            merged = []
            for action in current:
                if action.id in retained_by_id:
                    merged.append(retained_by_id[action.id])
                elif action.id not in processed_ids:
                    merged.append(action)

            if await self._store.compare_and_set(
                keys.PENDING_ACTIONS, self._encode(merged), revision
            ):
                return merged

        raise StorageError("Pending action queue kept changing during sync write")

    async def clear(self) -> None:
        """Remove every pending action.

        Raises:
            StorageError: If the write fails
        """
        await self._store.remove(keys.PENDING_ACTIONS)
