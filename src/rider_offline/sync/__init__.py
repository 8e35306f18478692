"""Sync module for the pending action queue and its replay."""

from rider_offline.sync.engine import Executor, SyncEngine, SyncReport
from rider_offline.sync.executors import RiderApiClient, build_executors
from rider_offline.sync.models import (
    ActionType,
    HttpMethod,
    PendingAction,
    PendingActionInput,
)
from rider_offline.sync.queue import ActionQueue

__all__ = [
    "ActionQueue",
    "ActionType",
    "Executor",
    "HttpMethod",
    "PendingAction",
    "PendingActionInput",
    "RiderApiClient",
    "SyncEngine",
    "SyncReport",
    "build_executors",
]
