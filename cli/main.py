"""eventgraph CLI — inspect and feed the event relation store.

Usage:
    python cli/main.py --help

Commands:
    db init   → create the edge / node tables
    store     → ingest events from a JSON file (or stdin)
    children  → list the children of an event for one relation type
    edges     → list every outgoing edge of an event
    node      → show the stored metadata of an event
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from eventgraph.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
import logging
import sqlite3
from typing import Any, Optional

import psycopg
import typer

from eventgraph.config import settings
from eventgraph.db import ConnectionString, RelationStore, open_store
from eventgraph.events import Event

app = typer.Typer(
    name="eventgraph",
    help="Event relation store CLI.",
    no_args_is_help=True,
)

_STORE_ERRORS = (sqlite3.Error, psycopg.Error, ValueError)


@app.callback()
def main(
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Override EVENTGRAPH_DATABASE_URL."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override EVENTGRAPH_LOG_LEVEL."
    ),
) -> None:
    """Event relation store CLI."""
    if database_url:
        settings.database_url_override = database_url
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _open() -> RelationStore:
    try:
        return open_store()
    except _STORE_ERRORS as e:
        typer.echo(f"Cannot open relation store: {e}", err=True)
        raise typer.Exit(code=1)


def _read_events(path: str) -> list[dict[str, Any]]:
    raw = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    return data if isinstance(data, list) else [data]


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Create the relation tables if they do not exist."""
    store = _open()
    store.close()
    location = ConnectionString(settings.database_url).redacted()
    typer.echo(f"[db init] Relation store ready at {location}")


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------
@app.command("store")
def store_cmd(
    path: str = typer.Argument(..., help="JSON file with one event or a list of events ('-' for stdin)."),
) -> None:
    """Store the relations declared by one or more events."""
    try:
        raw_events = _read_events(path)
    except (OSError, ValueError) as e:
        typer.echo(f"[store] Cannot read events: {e}", err=True)
        raise typer.Exit(code=1)

    with _open() as store:
        stored = 0
        for raw in raw_events:
            try:
                event = Event.from_dict(raw)
            except (ValueError, TypeError) as e:
                typer.echo(f"[store] Skipping event: {e}", err=True)
                continue
            try:
                relation = store.store_relation(event)
            except _STORE_ERRORS as e:
                typer.echo(f"[store] Failed on {event.event_id}: {e}", err=True)
                raise typer.Exit(code=1)
            if relation:
                stored += 1

    typer.echo(f"[store] {len(raw_events)} event(s) read, {stored} relation(s) stored.")


@app.command("children")
def children_cmd(
    parent_id: str = typer.Argument(..., help="Parent event ID."),
    rel_type: str = typer.Option(..., "--rel-type", help="Relation type, e.g. m.reference."),
) -> None:
    """List the children of PARENT_ID for one relation type."""
    with _open() as store:
        try:
            children = store.children_for_parent(parent_id, rel_type)
        except _STORE_ERRORS as e:
            typer.echo(f"[children] Query failed: {e}", err=True)
            raise typer.Exit(code=1)
    if not children:
        typer.echo(f"[children] No {rel_type!r} children of {parent_id}.")
        return
    for child_id in children:
        typer.echo(child_id)


@app.command("edges")
def edges_cmd(
    parent_id: str = typer.Argument(..., help="Parent event ID."),
) -> None:
    """List every outgoing edge of PARENT_ID."""
    with _open() as store:
        try:
            edges = store.edges_for_parent(parent_id)
        except _STORE_ERRORS as e:
            typer.echo(f"[edges] Query failed: {e}", err=True)
            raise typer.Exit(code=1)
    if not edges:
        typer.echo(f"[edges] No edges from {parent_id}.")
        return
    for e in edges:
        typer.echo(f"  {e.parent_event_id} --[{e.rel_type}]--> {e.child_event_id}")


@app.command("node")
def node_cmd(
    event_id: str = typer.Argument(..., help="Event ID."),
) -> None:
    """Show the stored metadata of EVENT_ID."""
    with _open() as store:
        try:
            node = store.get_node(event_id)
        except _STORE_ERRORS as e:
            typer.echo(f"[node] Query failed: {e}", err=True)
            raise typer.Exit(code=1)
    if node is None:
        typer.echo(f"[node] {event_id} not found.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"  {node.event_id}  room={node.room_id}  origin_server_ts={node.origin_server_ts}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
