"""Database layer package.

Public re-exports so callers can write::

    from eventgraph.db import open_store
    from eventgraph.db import RelationStore
"""

from eventgraph.db.connection import ConnectionString, get_connection
from eventgraph.db.models import Edge, Node
from eventgraph.db.schema import init_db
from eventgraph.db.store import (
    PostgresRelationStore,
    RelationStore,
    SQLiteRelationStore,
    open_store,
)

__all__ = [
    "ConnectionString",
    "Edge",
    "Node",
    "PostgresRelationStore",
    "RelationStore",
    "SQLiteRelationStore",
    "get_connection",
    "init_db",
    "open_store",
]
