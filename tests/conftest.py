"""Shared fixtures for offline engine tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from rider_offline.errors import ActionExecutionError
from rider_offline.storage import MemoryStore, SQLiteStore
from rider_offline.sync import ActionType, HttpMethod, PendingActionInput


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 24, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingExecutors:
    """Executor map that records calls and fails for selected types."""

    def __init__(self) -> None:
        self.calls: list[tuple[ActionType, dict]] = []
        self.failing: set[ActionType] = set()

    def mapping(self) -> dict:
        return {action_type: self._make(action_type) for action_type in ActionType}

    def _make(self, action_type: ActionType):
        async def execute(payload: dict) -> None:
            await asyncio.sleep(0)
            self.calls.append((action_type, payload))
            if action_type in self.failing:
                raise ActionExecutionError("backend rejected")

        return execute


class GatedExecutor:
    """Executor that blocks until released, to hold a sync pass open."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def __call__(self, payload: dict) -> None:
        self.calls += 1
        self.entered.set()
        await self.release.wait()


def make_input(
    action_type: ActionType = ActionType.LOCATION_UPDATE,
    payload: dict | None = None,
    max_retries: int = 3,
) -> PendingActionInput:
    """Build a PendingActionInput with a placeholder route."""
    return PendingActionInput(
        type=action_type,
        payload=payload if payload is not None else {"latitude": 6.9271, "longitude": 79.8612},
        max_retries=max_retries,
        endpoint="/rider/location",
        method=HttpMethod.POST,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "offline.db"


@pytest.fixture
def sqlite_store(db_path: Path):
    store = SQLiteStore(db_path)
    yield store
    asyncio.run(store.close())


@pytest.fixture
def executors() -> RecordingExecutors:
    return RecordingExecutors()
