"""Structured JSON logging for the offline engine.

Provides audit-friendly logging with contextual fields for queued actions,
sync passes, and connectivity state changes. Payload contents are never
logged, only action ids and types.

Usage:
    from rider_offline.logging import setup_logging, get_logger

    setup_logging("INFO")
    log = get_logger("rider_offline.sync")
    log.info("sync_started", extra={"pending": 3})
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pythonjsonlogger import jsonlogger

from rider_offline import __version__

# Rider identifier added to every record once known
_rider_id: str | None = None


class RiderJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds client context to all log records.

    Records from the engine's loggers get a ``component`` field (sync,
    state, cache). Payload values are never written: a ``payload`` passed in
    ``extra`` is replaced by its sorted keys.
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        """Add standard fields to every log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["client_version"] = __version__
        if _rider_id:
            log_record["rider_id"] = _rider_id

        if record.name.startswith("rider_offline."):
            log_record["component"] = record.name.split(".")[1]

        payload = log_record.get("payload")
        if isinstance(payload, dict):
            log_record["payload"] = {"redacted": True, "keys": sorted(payload)}
        elif payload is not None:
            log_record["payload"] = {"redacted": True}

        if "message" not in log_record and record.getMessage():
            log_record["message"] = record.getMessage()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time as ISO 8601."""
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return dt.isoformat()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    rider_id: str | None = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """Configure root logger with JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for rotating file handler
        rider_id: Identifier of the signed-in rider, if any
        max_bytes: Max size per log file for rotation
        backup_count: Number of backup files to keep
    """
    global _rider_id
    if rider_id:
        _rider_id = rider_id

    formatter = RiderJsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get a named logger.

    Args:
        name: Logger name (e.g., 'rider_offline.sync')

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def sync_logger() -> logging.Logger:
    """Get logger for queue and sync events."""
    return get_logger("rider_offline.sync")


def state_logger() -> logging.Logger:
    """Get logger for connectivity and state changes."""
    return get_logger("rider_offline.state")


def cache_logger() -> logging.Logger:
    """Get logger for read cache events."""
    return get_logger("rider_offline.cache")


# --- Audit Event Functions ---


def log_action_queued(
    logger: logging.Logger,
    action_id: str,
    action_type: str,
    queue_length: int,
) -> None:
    """Log an action being added to the pending queue."""
    logger.info(
        "Action queued",
        extra={
            "event": "action_queued",
            "action_id": action_id,
            "action_type": action_type,
            "queue_length": queue_length,
        },
    )


def log_action_synced(logger: logging.Logger, action_id: str, action_type: str) -> None:
    """Log an action that was applied by the backend."""
    logger.debug(
        "Action synced",
        extra={
            "event": "action_synced",
            "action_id": action_id,
            "action_type": action_type,
        },
    )


def log_action_failed(
    logger: logging.Logger,
    action_id: str,
    action_type: str,
    error: str,
    retry_count: int,
    max_retries: int,
) -> None:
    """Log a failed execution attempt.

    Args:
        logger: Logger instance
        action_id: Pending action id
        action_type: Action type value
        error: Error message (no payload data)
        retry_count: Retry count after this failure
        max_retries: Retry bound of the action
    """
    logger.warning(
        "Action failed",
        extra={
            "event": "action_failed",
            "action_id": action_id,
            "action_type": action_type,
            "error": error,
            "retry_count": retry_count,
            "max_retries": max_retries,
        },
    )


def log_action_dropped(
    logger: logging.Logger,
    action_id: str,
    action_type: str,
    max_retries: int,
) -> None:
    """Log an action discarded after exhausting its retries."""
    logger.warning(
        "Action dropped after retry exhaustion",
        extra={
            "event": "action_dropped",
            "action_id": action_id,
            "action_type": action_type,
            "max_retries": max_retries,
        },
    )


def log_sync_complete(
    logger: logging.Logger,
    succeeded: int,
    retained: int,
    dropped: int,
    remaining: int,
) -> None:
    """Log the outcome of a sync pass."""
    logger.info(
        "Sync complete",
        extra={
            "event": "sync_complete",
            "succeeded": succeeded,
            "retained": retained,
            "dropped": dropped,
            "remaining": remaining,
        },
    )


def log_state_change(
    logger: logging.Logger,
    old_state: str,
    new_state: str,
    trigger: str | None = None,
) -> None:
    """Log a state transition.

    Args:
        logger: Logger instance
        old_state: Previous state
        new_state: New state
        trigger: What triggered the change
    """
    extra = {
        "event": "state_change",
        "old_state": old_state,
        "new_state": new_state,
    }
    if trigger:
        extra["trigger"] = trigger
    logger.info("State changed", extra=extra)
