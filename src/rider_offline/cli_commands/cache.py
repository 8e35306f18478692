"""Read cache CLI commands."""

import asyncio

import typer

from rider_offline.cache import CacheStore
from rider_offline.config import get_settings
from rider_offline.storage import SQLiteStore

cache_app = typer.Typer(
    name="cache",
    help="Read cache - inspect or clear cached responses.",
    no_args_is_help=True,
)


async def _cache_keys() -> list[tuple[str, str]]:
    settings = get_settings()
    if not settings.store_path.exists():
        return []
    store = SQLiteStore(settings.store_path)
    try:
        entries = await CacheStore(store).get_cached_data()
    finally:
        await store.close()
    return [(entry.key, entry.expires_at.isoformat()) for entry in entries]


@cache_app.command("list")
def list_command() -> None:
    """List valid cache keys and when they expire."""
    entries = asyncio.run(_cache_keys())
    if not entries:
        typer.echo("Cache is empty.")
        return
    for key, expires_at in entries:
        typer.echo(f"{key}  expires {expires_at}")


async def _clear(key: str | None) -> None:
    settings = get_settings()
    store = SQLiteStore(settings.store_path)
    try:
        await CacheStore(store).clear_cache(key)
    finally:
        await store.close()


@cache_app.command("clear")
def clear_command(
    key: str = typer.Argument(None, help="Cache key to remove (default: all)"),
) -> None:
    """Remove one cached entry, or the whole cache."""
    asyncio.run(_clear(key))
    typer.echo(f"Cache cleared: {key or 'all'}")
