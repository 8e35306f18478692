"""Typed helpers for queueing the rider's mutating operations."""

from typing import Any

from rider_offline.engine.coordinator import OfflineCoordinator
from rider_offline.sync.models import (
    ActionType,
    AvailabilityPayload,
    HttpMethod,
    JobStatusPayload,
    LocationPayload,
    Payload,
    PendingActionInput,
    PhotoUploadPayload,
    QRScanPayload,
)


async def _queue(
    coordinator: OfflineCoordinator,
    action_type: ActionType,
    payload: Payload,
    endpoint: str,
    method: HttpMethod,
    max_retries: int | None,
) -> None:
    if max_retries is None:
        max_retries = coordinator.retry_policies[action_type.value]
    await coordinator.queue_action(
        PendingActionInput(
            type=action_type,
            payload=payload.model_dump(mode="json"),
            max_retries=max_retries,
            endpoint=endpoint,
            method=method,
        )
    )


async def queue_location_update(
    coordinator: OfflineCoordinator,
    latitude: float,
    longitude: float,
    max_retries: int | None = None,
) -> None:
    await _queue(
        coordinator,
        ActionType.LOCATION_UPDATE,
        LocationPayload(latitude=latitude, longitude=longitude),
        "/rider/location",
        HttpMethod.POST,
        max_retries,
    )


async def queue_job_status_update(
    coordinator: OfflineCoordinator,
    job_id: str,
    status: str,
    data: dict[str, Any] | None = None,
    max_retries: int | None = None,
) -> None:
    await _queue(
        coordinator,
        ActionType.JOB_STATUS,
        JobStatusPayload(job_id=job_id, status=status, data=data),
        f"/rider/jobs/{job_id}/status",
        HttpMethod.PUT,
        max_retries,
    )


async def queue_qr_scan(
    coordinator: OfflineCoordinator,
    job_id: str,
    qr_data: str,
    max_retries: int | None = None,
) -> None:
    await _queue(
        coordinator,
        ActionType.QR_SCAN,
        QRScanPayload(job_id=job_id, qr_data=qr_data),
        f"/rider/jobs/{job_id}/scan-qr",
        HttpMethod.POST,
        max_retries,
    )


async def queue_photo_upload(
    coordinator: OfflineCoordinator,
    job_id: str,
    photo_uri: str,
    max_retries: int | None = None,
) -> None:
    await _queue(
        coordinator,
        ActionType.PHOTO_UPLOAD,
        PhotoUploadPayload(job_id=job_id, photo_uri=photo_uri),
        f"/rider/jobs/{job_id}/photo",
        HttpMethod.POST,
        max_retries,
    )


async def queue_availability_update(
    coordinator: OfflineCoordinator,
    is_available: bool,
    max_retries: int | None = None,
) -> None:
    await _queue(
        coordinator,
        ActionType.AVAILABILITY_UPDATE,
        AvailabilityPayload(is_available=is_available),
        "/rider/availability",
        HttpMethod.PUT,
        max_retries,
    )
