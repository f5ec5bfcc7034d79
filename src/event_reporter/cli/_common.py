"""Shared CLI helpers."""

from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console

from ..exceptions import EventReporterError
from ..eventstore import EventStore

console = Console()


@contextmanager
def open_store(ctx: typer.Context, run_migration: bool = True) -> Iterator[EventStore]:
    """Open the store named by the CLI config; report errors and exit 1."""
    config = ctx.obj["config"]
    try:
        with EventStore.open(config=config, run_migration=run_migration) as store:
            yield store
    except EventReporterError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def parse_key(value: str) -> bytes:
    """Parse a hex key as printed by ``keys``."""
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise typer.BadParameter(f"not a hex key: {value!r}")
