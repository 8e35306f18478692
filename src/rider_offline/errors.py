"""Exception types raised inside the offline engine.

None of these reach callers of the public coordinator API; they are raised
and caught internally and reported through logging.
"""


class OfflineError(Exception):
    """Base class for offline engine errors."""


class StorageError(OfflineError):
    """Reading from or writing to the persistent store failed."""


class StorageDecodeError(StorageError):
    """A persisted value could not be decoded."""


class ActionExecutionError(OfflineError):
    """An executor failed to apply a pending action."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownActionError(ActionExecutionError):
    """No executor is bound to the action's type."""
