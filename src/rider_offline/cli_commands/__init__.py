"""CLI command modules for the offline engine."""

from rider_offline.cli_commands.cache import cache_app
from rider_offline.cli_commands.queue import queue_app
from rider_offline.cli_commands.status import status_command

__all__ = ["cache_app", "queue_app", "status_command"]
