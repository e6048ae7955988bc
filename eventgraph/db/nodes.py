"""Operations on the ``relation_nodes`` table."""

from __future__ import annotations

from typing import Any, Optional

from eventgraph.db.connection import POSTGRES, SQLITE
from eventgraph.db.models import Node

_INSERT_NODE = {
    SQLITE: """
        INSERT INTO relation_nodes (event_id, origin_server_ts, room_id)
        VALUES (?, ?, ?)
        ON CONFLICT DO NOTHING
    """,
    POSTGRES: """
        INSERT INTO relation_nodes (event_id, origin_server_ts, room_id)
        VALUES (%s, %s, %s)
        ON CONFLICT DO NOTHING
    """,
}

_SELECT_NODE = {
    SQLITE: "SELECT event_id, origin_server_ts, room_id FROM relation_nodes WHERE event_id = ?",
    POSTGRES: "SELECT event_id, origin_server_ts, room_id FROM relation_nodes WHERE event_id = %s",
}


def insert_node(conn: Any, dialect: str, node: Node) -> None:
    """Insert *node*; if its ``event_id`` is already stored the first write wins."""
    conn.execute(_INSERT_NODE[dialect], (node.event_id, node.origin_server_ts, node.room_id))


def get_node(conn: Any, dialect: str, event_id: str) -> Optional[Node]:
    """Fetch a single node by event ID.  Returns ``None`` if not found."""
    row = conn.execute(_SELECT_NODE[dialect], (event_id,)).fetchone()
    if row is None:
        return None
    return Node(event_id=row[0], origin_server_ts=row[1], room_id=row[2])
