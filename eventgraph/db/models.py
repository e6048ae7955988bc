"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer builds them
from rows returned by either engine.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Edge:
    parent_event_id: str
    child_event_id: str
    rel_type: str


@dataclass(frozen=True)
class Node:
    event_id: str
    origin_server_ts: int
    room_id: str
