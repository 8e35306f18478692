"""Status command for the rider-offline CLI."""

import asyncio
import json
from datetime import datetime

import typer

from rider_offline.cache import CacheStore
from rider_offline.config import get_settings
from rider_offline.storage import SQLiteStore, keys
from rider_offline.sync import ActionQueue
from rider_offline.sync.models import from_epoch_ms, utc_now


def _format_time_ago(timestamp: datetime | None) -> str:
    """Format a timestamp as 'X minutes ago' style string."""
    if timestamp is None:
        return "Never"

    seconds = int((utc_now() - timestamp).total_seconds())
    if seconds < 60:
        return f"{seconds} seconds ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    days = hours // 24
    return f"{days} day{'s' if days != 1 else ''} ago"


async def _collect_status() -> dict:
    """Read queue, cache and flag state from the local store."""
    settings = get_settings()
    if not settings.store_path.exists():
        return {
            "pending_actions": 0,
            "cached_entries": 0,
            "offline_mode": False,
            "last_sync": None,
        }

    store = SQLiteStore(settings.store_path)
    try:
        pending = await ActionQueue(store).count()
        cached = len(await CacheStore(store).get_cached_data())
        last_sync = await store.get(keys.LAST_SYNC)
        offline_mode = await store.get(keys.OFFLINE_MODE)
    finally:
        await store.close()

    return {
        "pending_actions": pending,
        "cached_entries": cached,
        "offline_mode": offline_mode == "true",
        "last_sync": (
            from_epoch_ms(int(last_sync)).isoformat() if last_sync and last_sync.isdigit() else None
        ),
    }


def status_command(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show offline engine status.

    Displays the number of pending actions, valid cache entries,
    the offline-mode flag and when the queue was last synced.
    """
    status_data = asyncio.run(_collect_status())

    if output_json:
        typer.echo(json.dumps(status_data))
        return

    last_sync = status_data["last_sync"]
    typer.echo("")
    typer.echo("Rider Offline Status")
    typer.echo("--------------------")
    typer.echo(f"Pending actions: {status_data['pending_actions']}")
    typer.echo(f"Cached entries: {status_data['cached_entries']}")
    typer.echo(f"Offline mode: {'on' if status_data['offline_mode'] else 'off'}")
    typer.echo(
        f"Last sync: {_format_time_ago(datetime.fromisoformat(last_sync) if last_sync else None)}"
    )
    typer.echo("")
