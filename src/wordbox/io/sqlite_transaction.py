"""Explicit SQLite transaction scope for autocommit connections."""

import sqlite3
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block inside ``BEGIN IMMEDIATE`` ... ``COMMIT``.

    The connection must be opened with ``isolation_level=None``. ``IMMEDIATE``
    takes the write lock up front, so the reads inside the block cannot be
    invalidated by another writer before the block writes. Any exception rolls
    the whole block back and is re-raised unchanged.
    """
    connection.execute("BEGIN IMMEDIATE")
    try:
        yield connection
        connection.execute("COMMIT")
    except BaseException:
        if connection.in_transaction:
            connection.execute("ROLLBACK")
        raise
