"""CLI entry point: registers all subcommands."""

from pathlib import Path
from typing import Optional

import typer

from ..config import load_config
from ..exceptions import EventReporterError
from ..logging_config import setup_logging
from ._common import console

app = typer.Typer(
    name="event-reporter",
    help="event-reporter - inspect and drain the local event queue",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def callback(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Event store file (default: db_path from config)",
        dir_okay=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also append log records to this file", dir_okay=False
    ),
):
    """
    Inspect, fill and drain an event-reporter store file.

    [bold cyan]Examples:[/bold cyan]

      event-reporter --db events.db keys

      event-reporter --db events.db add audioBait --details '{"fileId": "bird2"}'

      event-reporter --db events.db migrate
    """
    try:
        settings = load_config(
            config_file=config,
            db_path=str(db) if db is not None else None,
            verbose=verbose,
            quiet=quiet,
            log_file=str(log_file) if log_file is not None else None,
        )
    except EventReporterError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(settings.verbosity, settings.log_file)
    ctx.ensure_object(dict)
    ctx.obj["config"] = settings


def main() -> None:
    app()


# Import subcommands to register them
from .events import (  # noqa: F401, E402
    add as _add,
    delete as _delete,
    keys as _keys,
    legacy as _legacy,
    migrate as _migrate,
    show as _show,
)
