"""rider-offline CLI - inspect and drain the offline engine's local state."""

import typer

from rider_offline import __version__
from rider_offline.cli_commands.cache import cache_app
from rider_offline.cli_commands.queue import queue_app
from rider_offline.cli_commands.status import status_command

app = typer.Typer(
    name="rider-offline",
    help="Rider offline engine - pending actions, sync and read cache.",
    no_args_is_help=True,
)

app.add_typer(queue_app, name="queue")
app.add_typer(cache_app, name="cache")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"rider-offline {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Rider offline engine."""
    pass


app.command(name="status")(status_command)


if __name__ == "__main__":
    app()
