"""The relation store: persists event edges and answers child lookups.

Usage::

    from eventgraph.db import open_store

    with open_store("sqlite:///relations.db") as store:
        store.store_relation(event)
        children = store.children_for_parent("$root", "m.reference")

``open_store()`` picks the implementation from the connection string:

``SQLiteRelationStore``
    Embedded, single-writer.  Every write goes through an
    :class:`~eventgraph.db.writer.ExclusiveWriter` on one shared connection;
    file databases are read through per-thread connections.

``PostgresRelationStore``
    Client/server, multi-writer.  A psycopg connection pool; writes go through
    a :class:`~eventgraph.db.writer.DummyWriter` and rely on MVCC plus the
    unique constraints.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Iterator, Optional, Union

from psycopg_pool import ConnectionPool

from eventgraph.config import settings
from eventgraph.db import edges, nodes
from eventgraph.db.connection import (
    POSTGRES,
    SQLITE,
    ConnectionString,
    connect_postgres,
    get_connection,
    open_pool,
)
from eventgraph.db.models import Edge, Node
from eventgraph.db.schema import init_db
from eventgraph.db.writer import DummyWriter, ExclusiveWriter, Writer
from eventgraph.events import Event
from eventgraph.relations import Relation, extract_relation

logger = logging.getLogger(__name__)


class RelationStore(ABC):
    """Common contract of both engine variants.

    Subclasses only provide connections; the SQL and the unit of work are
    shared.
    """

    dialect: str

    def __init__(self, writer: Writer) -> None:
        self._writer = writer

    # ------------------------------------------------------------------
    # Connection hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def _transaction(self) -> AbstractContextManager[Any]:
        """Yield a connection inside a transaction (commit / rollback on exit)."""

    @abstractmethod
    def _reader(self) -> AbstractContextManager[Any]:
        """Yield a connection for read-only queries."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection(s)."""

    def __enter__(self) -> RelationStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def store_relation(self, event: Optional[Event]) -> Relation:
        """Record the edge declared by *event* and the event's node metadata.

        Events without a relationship descriptor are ignored.  The edge and
        the node are written in one transaction; rows that already exist are
        left untouched.

        Returns:
            The extracted :class:`~eventgraph.relations.Relation`, falsy
            (``NO_RELATION``) when nothing was written.

        Raises:
            sqlite3.Error | psycopg.Error: On any storage fault other than the
                expected uniqueness conflict.
        """
        relation = extract_relation(event)
        if not relation:
            return relation

        node = Node(
            event_id=event.event_id,
            origin_server_ts=event.origin_server_ts,
            room_id=event.room_id,
        )

        def _write(conn: Any) -> None:
            edges.insert_edge(
                conn,
                self.dialect,
                relation.parent_event_id,
                relation.child_event_id,
                relation.rel_type,
            )
            nodes.insert_node(conn, self.dialect, node)

        self._writer.do(self._transaction, _write)
        logger.debug(
            "Stored %s -[%s]-> %s",
            relation.parent_event_id,
            relation.rel_type,
            relation.child_event_id,
        )
        return relation

    def children_for_parent(self, parent_event_id: str, rel_type: str) -> list[str]:
        """Return the IDs of events related to *parent_event_id* by *rel_type*.

        No ordering is guaranteed.  Empty arguments can never match a stored
        edge and yield ``[]`` without querying.
        """
        if not parent_event_id or not rel_type:
            return []
        with self._reader() as conn:
            return edges.children_for_parent(conn, self.dialect, parent_event_id, rel_type)

    def edges_for_parent(self, parent_event_id: str) -> list[Edge]:
        """Return every outgoing edge of *parent_event_id*, of any type."""
        if not parent_event_id:
            return []
        with self._reader() as conn:
            return edges.edges_for_parent(conn, self.dialect, parent_event_id)

    def get_node(self, event_id: str) -> Optional[Node]:
        """Return the stored metadata for *event_id*, or ``None``."""
        if not event_id:
            return None
        with self._reader() as conn:
            return nodes.get_node(conn, self.dialect, event_id)


class SQLiteRelationStore(RelationStore):
    dialect = SQLITE

    def __init__(self, conn: sqlite3.Connection, db_path: Optional[str] = None) -> None:
        self._write_lock = threading.Lock()
        super().__init__(ExclusiveWriter(self._write_lock))
        self._conn = conn
        init_db(self._conn, SQLITE)

        # File databases read through one connection per thread, so readers
        # only see committed WAL snapshots.  An in-memory database exists on
        # a single connection; its readers wait for the writer instead.
        self._db_path = None if db_path in (None, ":memory:") else db_path
        self._local = threading.local()
        self._read_conns: list[sqlite3.Connection] = []
        self._read_conns_lock = threading.Lock()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        # The connection context manager commits on success, rolls back on error.
        with self._conn:
            yield self._conn

    def _read_connection(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = get_connection(self._db_path)
            self._local.conn = conn
            with self._read_conns_lock:
                self._read_conns.append(conn)
        return conn

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        if self._db_path is None:
            with self._write_lock:
                yield self._conn
        else:
            yield self._read_connection()

    def close(self) -> None:
        with self._read_conns_lock:
            for conn in self._read_conns:
                conn.close()
            self._read_conns.clear()
        self._conn.close()


class PostgresRelationStore(RelationStore):
    dialect = POSTGRES

    def __init__(self, pool: ConnectionPool) -> None:
        super().__init__(DummyWriter())
        self._pool = pool

    @contextmanager
    def _transaction(self) -> Iterator[Any]:
        # pool.connection() commits on a clean exit and rolls back otherwise.
        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def _reader(self) -> Iterator[Any]:
        with self._pool.connection() as conn:
            yield conn

    def close(self) -> None:
        self._pool.close()


def open_store(database_url: Optional[Union[str, ConnectionString]] = None) -> RelationStore:
    """Open the relation store addressed by *database_url*.

    Schema creation runs every time and is idempotent.

    Args:
        database_url: Defaults to ``settings.database_url``.

    Raises:
        ValueError: If the connection string names an unsupported engine.
        sqlite3.Error | psycopg.Error: If the engine cannot be opened or the
            schema cannot be created.
    """
    url = ConnectionString(database_url or settings.database_url)

    if url.is_postgres():
        with connect_postgres(url) as conn:
            init_db(conn, POSTGRES)
        store: RelationStore = PostgresRelationStore(open_pool(url))
    else:
        conn = get_connection(url.sqlite_path())
        try:
            store = SQLiteRelationStore(conn, url.sqlite_path())
        except sqlite3.Error:
            conn.close()
            raise

    logger.info("Opened %s relation store at %s", store.dialect, url.redacted())
    return store
