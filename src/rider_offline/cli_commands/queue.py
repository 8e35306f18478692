"""Pending action queue CLI commands."""

import asyncio
import json

import typer

from rider_offline.config import get_settings
from rider_offline.engine import OfflineCoordinator
from rider_offline.logging import setup_logging
from rider_offline.monitor import ConnectivityMonitor, HttpConnectivityProbe
from rider_offline.storage import SQLiteStore
from rider_offline.sync import ActionQueue, RiderApiClient, build_executors

queue_app = typer.Typer(
    name="queue",
    help="Pending actions - list, clear, or sync them now.",
    no_args_is_help=True,
)


async def _list_actions() -> list[dict]:
    settings = get_settings()
    if not settings.store_path.exists():
        return []
    store = SQLiteStore(settings.store_path)
    try:
        actions = await ActionQueue(store).list()
    finally:
        await store.close()
    return [action.model_dump(mode="json", exclude={"payload"}) for action in actions]


@queue_app.command("list")
def list_command(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """List pending actions in the order they will be replayed."""
    actions = asyncio.run(_list_actions())

    if output_json:
        typer.echo(json.dumps(actions))
        return

    if not actions:
        typer.echo("No pending actions.")
        return

    for action in actions:
        typer.echo(
            f"{action['id']}  {action['type']:<20} {action['method']:<6} {action['endpoint']}"
            f"  retries {action['retry_count']}/{action['max_retries']}"
        )


async def _clear_actions() -> None:
    settings = get_settings()
    store = SQLiteStore(settings.store_path)
    try:
        await ActionQueue(store).clear()
    finally:
        await store.close()


@queue_app.command("clear")
def clear_command(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Discard every pending action without sending it."""
    if not yes:
        typer.confirm("Discard all pending actions?", abort=True)
    asyncio.run(_clear_actions())
    typer.echo("Pending actions cleared.")


async def _sync_now() -> dict:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file, rider_id=settings.rider_id)

    store = SQLiteStore(settings.store_path)
    client = RiderApiClient(settings.api_base_url, timeout=settings.api_timeout)
    monitor = ConnectivityMonitor(initially_connected=False)
    probe = HttpConnectivityProbe(
        monitor,
        lambda: client.check_health(settings.health_path),
        interval=settings.connectivity_interval,
    )
    coordinator = OfflineCoordinator(
        store,
        monitor,
        build_executors(client),
        retry_policies=settings.load_retry_policies(),
        default_cache_ttl_minutes=settings.default_cache_ttl_minutes,
    )

    try:
        await coordinator.start()
        # Coming online triggers the sync pass
        await probe.check_once()
        await coordinator.wait_idle()
        state = coordinator.get_state()
    finally:
        await coordinator.close()
        await client.close()
        await store.close()

    return {
        "online": state.is_online,
        "pending_actions": state.pending_actions_count,
        "last_sync": state.last_sync_time.isoformat() if state.last_sync_time else None,
    }


@queue_app.command("sync")
def sync_command(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Probe the backend and, if reachable, replay pending actions once."""
    result = asyncio.run(_sync_now())

    if output_json:
        typer.echo(json.dumps(result))
    elif not result["online"]:
        typer.echo(f"Backend unreachable; {result['pending_actions']} actions still pending.")
    else:
        typer.echo(f"Sync finished; {result['pending_actions']} actions still pending.")

    if not result["online"]:
        raise typer.Exit(1)
