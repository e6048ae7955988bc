"""Database initialisation.

``init_db(conn, dialect)`` is idempotent — safe to call on every startup.
"""

from __future__ import annotations

import logging
from typing import Any

from eventgraph.config import settings
from eventgraph.db.connection import POSTGRES, SQLITE

logger = logging.getLogger(__name__)


def _read_schema() -> str:
    """Load schema.sql bundled with the package."""
    return settings.schema_path.read_text(encoding="utf-8")


def init_db(conn: Any, dialect: str = SQLITE) -> None:
    """Create the edge and node tables if they do not exist.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this multiple times
    on the same database is safe.

    Args:
        conn: An open :class:`sqlite3.Connection` or :class:`psycopg.Connection`.
        dialect: ``"sqlite"`` or ``"postgres"``.

    Raises:
        ValueError: For an unknown *dialect*.
    """
    sql = _read_schema()
    if dialect == SQLITE:
        # executescript() issues an implicit COMMIT before execution, which is
        # fine for a DDL-only script.
        conn.executescript(sql)
    elif dialect == POSTGRES:
        # Without parameters psycopg sends the script in one simple query.
        with conn.transaction():
            conn.execute(sql)
    else:
        raise ValueError(f"Unknown dialect {dialect!r}")
    logger.debug("Schema ensured (%s)", dialect)
