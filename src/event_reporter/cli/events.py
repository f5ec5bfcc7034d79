"""Event queue commands: list, show, add, delete, migrate and the legacy listing."""

import json
from datetime import datetime
from typing import Optional

import typer
from rich.table import Table

from ..eventstore import Event, EventDescription, canonical_details, now, timestamp_from_key
from ..eventstore.codec import format_timestamp, parse_timestamp
from ..exceptions import InvalidKeyError, MalformedRecordError
from ..logging_config import get_logger
from . import app
from ._common import console, open_store, parse_key

logger = get_logger(__name__)

MALFORMED_TYPE = "<malformed>"


def _key_timestamp(key: bytes) -> str:
    try:
        return format_timestamp(timestamp_from_key(key))
    except InvalidKeyError:
        return ""


@app.command()
def keys(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """List queued events, oldest first.

    A record that cannot be decoded is listed with its key timestamp and
    type <malformed>; the remaining records are still shown.
    """
    rows = []
    with open_store(ctx) as store:
        for key in store.get_keys():
            try:
                event = store.get_event(key)
            except MalformedRecordError as e:
                logger.warning("%s", e)
                rows.append((key.hex(), _key_timestamp(key), MALFORMED_TYPE))
                continue
            rows.append((key.hex(), format_timestamp(event.timestamp), event.description.type))

    if json_output:
        print(json.dumps([{"key": k, "timestamp": t, "type": ty} for k, t, ty in rows], indent=2))
        return

    if not rows:
        console.print("[yellow]No queued events.[/yellow]")
        return

    table = Table(title=f"Queued events ({len(rows)})")
    table.add_column("Key", style="cyan")
    table.add_column("Timestamp")
    table.add_column("Type", style="green")
    for row in rows:
        table.add_row(*row)
    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Event key (hex, as printed by 'keys')"),
):
    """Print one queued event."""
    raw_key = parse_key(key)
    with open_store(ctx) as store:
        event = store.get_event(raw_key)
    print(
        json.dumps(
            {
                "key": raw_key.hex(),
                "timestamp": format_timestamp(event.timestamp),
                "type": event.description.type,
                "details": event.description.details,
            },
            indent=2,
        )
    )


@app.command()
def add(
    ctx: typer.Context,
    event_type: str = typer.Argument(..., metavar="TYPE", help="Event type tag"),
    details: str = typer.Option("{}", "--details", "-d", help="Event details as JSON"),
    timestamp: Optional[str] = typer.Option(
        None, "--timestamp", "-t", help="ISO-8601 timestamp (default: now)"
    ),
):
    """Queue a new event."""
    try:
        details_text = canonical_details(json.loads(details))
    except ValueError as e:
        raise typer.BadParameter(f"--details is not valid JSON: {e}")
    try:
        ts: datetime = parse_timestamp(timestamp) if timestamp else now()
    except ValueError:
        raise typer.BadParameter(f"--timestamp is not ISO-8601: {timestamp!r}")

    with open_store(ctx) as store:
        key = store.add(
            Event(timestamp=ts, description=EventDescription(type=event_type, details=details_text))
        )
    console.print(f"[green]Queued[/green] {event_type} as [cyan]{key.hex()}[/cyan]")


@app.command()
def delete(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Event key (hex, as printed by 'keys')"),
):
    """Remove a queued event (no error if it is already gone)."""
    raw_key = parse_key(key)
    with open_store(ctx) as store:
        store.delete(raw_key)
    console.print(f"[green]Deleted[/green] [cyan]{raw_key.hex()}[/cyan]")


@app.command()
def migrate(ctx: typer.Context):
    """Open the store once so legacy events are migrated, and report the result."""
    with open_store(ctx) as store:
        report = store.migration_report
        remaining = len(store.get_keys())

    assert report is not None
    console.print(f"State: [bold]{report.state.value}[/bold]")
    console.print(f"Migrated: [yellow]{report.migrated}[/yellow]")
    if report.overwritten:
        console.print(f"Overwritten: [red]{report.overwritten}[/red]")
    console.print(f"Queued events: [yellow]{remaining}[/yellow]")


@app.command()
def legacy(ctx: typer.Context):
    """List timestamps still held in the legacy bucket, without migrating them."""
    with open_store(ctx, run_migration=False) as store:
        timestamps = store.all()

    if not timestamps:
        console.print("[green]Legacy bucket is empty.[/green]")
        return
    for ts in timestamps:
        console.print(format_timestamp(ts))
