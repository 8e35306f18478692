"""Pending action records and the typed payloads they carry."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert integer epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class ActionType(str, Enum):
    """Kinds of mutation the rider client can replay."""

    LOCATION_UPDATE = "location_update"
    JOB_STATUS = "job_status"
    QR_SCAN = "qr_scan"
    PHOTO_UPLOAD = "photo_upload"
    AVAILABILITY_UPDATE = "availability_update"


class HttpMethod(str, Enum):
    """HTTP method recorded with a pending action."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class PendingActionInput(BaseModel):
    """Caller-supplied part of a pending action."""

    type: ActionType
    payload: dict[str, Any] = Field(default_factory=dict)
    max_retries: int = Field(gt=0)
    endpoint: str
    method: HttpMethod


class PendingAction(PendingActionInput):
    """A queued mutating operation awaiting network execution."""

    id: str
    created_at: datetime
    retry_count: int = Field(default=0, ge=0)

    @classmethod
    def create(cls, action_input: PendingActionInput, now: datetime) -> "PendingAction":
        """Build a new record with a fresh id and zero retries."""
        return cls(
            **action_input.model_dump(),
            id=f"action_{to_epoch_ms(now)}_{uuid.uuid4().hex[:9]}",
            created_at=now,
            retry_count=0,
        )


PendingActionList = TypeAdapter(list[PendingAction])


# --- Typed payloads ---


class Payload(BaseModel):
    """Base of the typed action payloads."""

    model_config = ConfigDict(frozen=True)


class LocationPayload(Payload):
    latitude: float
    longitude: float


class JobStatusPayload(Payload):
    job_id: str
    status: str
    data: dict[str, Any] | None = None


class QRScanPayload(Payload):
    job_id: str
    qr_data: str


class PhotoUploadPayload(Payload):
    job_id: str
    photo_uri: str


class AvailabilityPayload(Payload):
    is_available: bool

