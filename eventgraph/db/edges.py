"""Operations on the ``relation_edges`` table.

Each statement is kept per dialect: SQLite uses ``?`` placeholders and names
the conflict target, PostgreSQL uses ``%s`` and a bare ``ON CONFLICT``.
"""

from __future__ import annotations

from typing import Any

from eventgraph.db.connection import POSTGRES, SQLITE
from eventgraph.db.models import Edge

_INSERT_EDGE = {
    SQLITE: """
        INSERT INTO relation_edges (parent_event_id, child_event_id, rel_type)
        VALUES (?, ?, ?)
        ON CONFLICT (parent_event_id, child_event_id, rel_type) DO NOTHING
    """,
    POSTGRES: """
        INSERT INTO relation_edges (parent_event_id, child_event_id, rel_type)
        VALUES (%s, %s, %s)
        ON CONFLICT DO NOTHING
    """,
}

_SELECT_CHILDREN = {
    SQLITE: """
        SELECT child_event_id FROM relation_edges
        WHERE  parent_event_id = ? AND rel_type = ?
    """,
    POSTGRES: """
        SELECT child_event_id FROM relation_edges
        WHERE  parent_event_id = %s AND rel_type = %s
    """,
}

_SELECT_EDGES = {
    SQLITE: """
        SELECT parent_event_id, child_event_id, rel_type FROM relation_edges
        WHERE  parent_event_id = ?
    """,
    POSTGRES: """
        SELECT parent_event_id, child_event_id, rel_type FROM relation_edges
        WHERE  parent_event_id = %s
    """,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def insert_edge(conn: Any, dialect: str, parent_id: str, child_id: str, rel_type: str) -> None:
    """Insert a directed edge; an identical existing triple is left alone."""
    conn.execute(_INSERT_EDGE[dialect], (parent_id, child_id, rel_type))


def children_for_parent(conn: Any, dialect: str, parent_id: str, rel_type: str) -> list[str]:
    """Return child IDs of *parent_id* linked with *rel_type* (unordered)."""
    rows = conn.execute(_SELECT_CHILDREN[dialect], (parent_id, rel_type)).fetchall()
    return [r[0] for r in rows]


def edges_for_parent(conn: Any, dialect: str, parent_id: str) -> list[Edge]:
    """Return every outgoing edge of *parent_id*, whatever its type."""
    rows = conn.execute(_SELECT_EDGES[dialect], (parent_id,)).fetchall()
    return [Edge(parent_event_id=r[0], child_event_id=r[1], rel_type=r[2]) for r in rows]
