"""Engine module for offline coordination."""

from rider_offline.engine.actions import (
    queue_availability_update,
    queue_job_status_update,
    queue_location_update,
    queue_photo_upload,
    queue_qr_scan,
)
from rider_offline.engine.coordinator import OfflineCoordinator, OfflineState, SyncPhase

__all__ = [
    "OfflineCoordinator",
    "OfflineState",
    "SyncPhase",
    "queue_availability_update",
    "queue_job_status_update",
    "queue_location_update",
    "queue_photo_upload",
    "queue_qr_scan",
]
