"""Connection factories for the two supported engine families.

Usage::

    from eventgraph.db.connection import ConnectionString, get_connection

    url = ConnectionString("sqlite:///relations.db")
    conn = get_connection(url.sqlite_path())
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg_pool import ConnectionPool

from eventgraph.config import settings

SQLITE = "sqlite"
POSTGRES = "postgres"

_POSTGRES_PREFIXES = ("postgres://", "postgresql://")
_SQLITE_PREFIXES = ("sqlite:///", "file:")


class ConnectionString(str):
    """A database URL that knows which engine family it addresses.

    Accepted forms:

    * ``postgres://...`` / ``postgresql://...`` -> PostgreSQL
    * ``sqlite:///path``, ``file:path``, a bare path or ``:memory:`` -> SQLite

    Any other ``scheme://`` is rejected with :class:`ValueError`.
    """

    def __new__(cls, value: Union[str, Path]) -> ConnectionString:
        value = str(value)
        if not value:
            raise ValueError("Empty database connection string")
        if "://" in value and not value.startswith(_POSTGRES_PREFIXES + _SQLITE_PREFIXES):
            scheme = value.split("://", 1)[0]
            raise ValueError(f"Unsupported database scheme {scheme!r}")
        return super().__new__(cls, value)

    def is_postgres(self) -> bool:
        return self.startswith(_POSTGRES_PREFIXES)

    @property
    def dialect(self) -> str:
        return POSTGRES if self.is_postgres() else SQLITE

    def sqlite_path(self) -> str:
        """Return the filesystem path (or ``:memory:``) for a SQLite URL."""
        if self.is_postgres():
            raise ValueError("Not a SQLite connection string")
        for prefix in _SQLITE_PREFIXES:
            if self.startswith(prefix):
                return self[len(prefix):]
        return str(self)

    def redacted(self) -> str:
        """The URL with any password masked, safe for logs."""
        if not self.is_postgres():
            return str(self)
        parts = urlsplit(self)
        if parts.password is None:
            return str(self)
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return urlunsplit(parts._replace(netloc=netloc))


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

def get_connection(db_path: Optional[Union[str, Path]] = None) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    Steps performed on every new connection:
    1. Allow use from any thread (writes are serialised by the store).
    2. Apply ``busy_timeout`` from settings.
    3. Switch to WAL journal mode so readers do not block the writer.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.

    Returns:
        A configured :class:`sqlite3.Connection` with ``row_factory`` set to
        :class:`sqlite3.Row` so columns can be accessed by name.
    """
    path = db_path or settings.db_path

    # Create parent directory if needed (no-op for `:memory:`)
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        str(path),
        timeout=settings.sqlite_busy_timeout / 1000.0,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row

    # PRAGMAs
    conn.execute(f"PRAGMA busy_timeout = {int(settings.sqlite_busy_timeout)}")
    conn.execute("PRAGMA journal_mode = WAL")

    return conn


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------

def connect_postgres(conninfo: str) -> psycopg.Connection:
    """Open a single PostgreSQL connection (used for schema creation)."""
    return psycopg.connect(conninfo, autocommit=False)


def open_pool(conninfo: str) -> ConnectionPool:
    """Open a connection pool sized from settings.

    Each pooled connection commits when its ``with`` block exits cleanly and
    rolls back when it exits with an exception.
    """
    return ConnectionPool(
        conninfo,
        min_size=settings.pg_pool_min_size,
        max_size=settings.pg_pool_max_size,
        timeout=settings.pg_pool_timeout,
        open=True,
    )
