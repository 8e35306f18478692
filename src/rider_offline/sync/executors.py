"""Async HTTP client applying queued rider mutations to the backend."""

import json
from pathlib import Path
from typing import Any

import httpx

from rider_offline import __version__
from rider_offline.errors import ActionExecutionError
from rider_offline.sync.engine import Executor
from rider_offline.sync.models import (
    ActionType,
    AvailabilityPayload,
    JobStatusPayload,
    LocationPayload,
    PhotoUploadPayload,
    QRScanPayload,
)


class RiderApiClient:
    """Async HTTP client for the rider mutation endpoints.

    Uses httpx.AsyncClient for connection pooling. Any non-2xx response or
    transport error is raised as ActionExecutionError; retrying is left to
    the sync engine, which does not distinguish client from server errors.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the rider API (e.g., https://host/api)
            timeout: Request timeout in seconds
            transport: Optional transport override
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": f"rider-offline/{__version__}"},
            transport=transport,
        )

    async def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.ConnectError as e:
            raise ActionExecutionError(f"Connection error: {e}") from e
        except httpx.TimeoutException as e:
            raise ActionExecutionError(f"Timeout: {e}") from e
        except httpx.HTTPError as e:
            raise ActionExecutionError(f"HTTP error: {e}") from e

        if not response.is_success:
            raise ActionExecutionError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except json.JSONDecodeError:
            return None

    async def update_location(self, payload: LocationPayload) -> Any:
        return await self._send(
            "POST",
            "/rider/location",
            json={"latitude": payload.latitude, "longitude": payload.longitude},
        )

    async def update_job_status(self, payload: JobStatusPayload) -> Any:
        body: dict[str, Any] = {"status": payload.status}
        if payload.data is not None:
            body["data"] = payload.data
        return await self._send("PUT", f"/rider/jobs/{payload.job_id}/status", json=body)

    async def scan_qr(self, payload: QRScanPayload) -> Any:
        return await self._send(
            "POST",
            f"/rider/jobs/{payload.job_id}/scan-qr",
            json={"qr_data": payload.qr_data},
        )

    async def upload_photo(self, payload: PhotoUploadPayload) -> Any:
        """Upload the package photo stored at ``payload.photo_uri``."""
        filepath = Path(payload.photo_uri.removeprefix("file://"))
        try:
            content = filepath.read_bytes()
        except OSError as e:
            raise ActionExecutionError(f"Photo not readable: {filepath}: {e}") from e

        files = {"photo": (filepath.name, content, "image/jpeg")}
        return await self._send("POST", f"/rider/jobs/{payload.job_id}/photo", files=files)

    async def update_availability(self, payload: AvailabilityPayload) -> Any:
        return await self._send(
            "PUT",
            "/rider/availability",
            json={"is_available": payload.is_available},
        )

    async def check_health(self, path: str = "/health") -> bool:
        """Return True if the backend health endpoint answers 200."""
        try:
            response = await self._client.get(path, timeout=httpx.Timeout(5.0))
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "RiderApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def build_executors(client: RiderApiClient) -> dict[ActionType, Executor]:
    """Bind every action type to the client method that applies it.

    Each executor validates the persisted payload into its typed model
    first; a payload that no longer validates fails like any other error.
    """

    async def location(payload: dict[str, Any]) -> Any:
        return await client.update_location(LocationPayload.model_validate(payload))

    async def job_status(payload: dict[str, Any]) -> Any:
        return await client.update_job_status(JobStatusPayload.model_validate(payload))

    async def qr_scan(payload: dict[str, Any]) -> Any:
        return await client.scan_qr(QRScanPayload.model_validate(payload))

    async def photo_upload(payload: dict[str, Any]) -> Any:
        return await client.upload_photo(PhotoUploadPayload.model_validate(payload))

    async def availability(payload: dict[str, Any]) -> Any:
        return await client.update_availability(AvailabilityPayload.model_validate(payload))

    return {
        ActionType.LOCATION_UPDATE: location,
        ActionType.JOB_STATUS: job_status,
        ActionType.QR_SCAN: qr_scan,
        ActionType.PHOTO_UPLOAD: photo_upload,
        ActionType.AVAILABILITY_UPDATE: availability,
    }
