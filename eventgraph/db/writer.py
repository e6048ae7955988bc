"""Write serialisation for multi-statement units of work.

A *writer* runs a unit of work inside a transaction so that all of its
statements are applied together or not at all::

    writer.do(store_transaction, lambda conn: insert_edge(conn, ...))

``transaction`` is a zero-argument callable returning a context manager that
yields a connection, commits on a clean exit and rolls back on an exception.

Two flavours exist:

``ExclusiveWriter``
    Holds a lock for the whole transaction so only one unit of work runs at a
    time.  Used for SQLite, which tolerates a single writer per database.

``DummyWriter``
    Runs the transaction directly and leaves isolation to the engine.  Used
    for PostgreSQL.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

TransactionFactory = Callable[[], AbstractContextManager[Any]]


class Writer(ABC):
    @abstractmethod
    def do(self, transaction: TransactionFactory, fn: Callable[[Any], T]) -> T:
        """Run *fn* inside a fresh transaction and return its result.

        Exceptions raised by *fn* or by the engine propagate unchanged after
        the transaction has been rolled back.
        """


class DummyWriter(Writer):
    def do(self, transaction: TransactionFactory, fn: Callable[[Any], T]) -> T:
        with transaction() as conn:
            return fn(conn)


class ExclusiveWriter(Writer):
    def __init__(self, lock: Optional[threading.Lock] = None) -> None:
        self._lock = lock or threading.Lock()

    def do(self, transaction: TransactionFactory, fn: Callable[[Any], T]) -> T:
        with self._lock:
            with transaction() as conn:
                return fn(conn)
