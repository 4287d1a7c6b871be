"""SQLite adapter using stdlib sqlite3."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from typing import Any

from row_orm.adapters.pool import ConnectionPool
from row_orm.core.connection import ConnectionConfig


class SqliteAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    @property
    def escape_percent(self) -> bool:
        return False

    def create_pool(self, config: ConnectionConfig) -> ConnectionPool:
        """Create a pool of SQLite connections.

        Each ``:memory:`` connection is its own database, so in-memory setups
        want ``pool_size=1``.
        """
        connections = []
        for _ in range(config.pool_size):
            conn = sqlite3.connect(config.database, check_same_thread=False, **config.extra)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            connections.append(conn)
        return ConnectionPool(connections)

    def acquire_connection(
        self, pool: ConnectionPool, timeout: float | None = None
    ) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        return pool.acquire(timeout)

    def release_connection(self, connection: sqlite3.Connection, pool: ConnectionPool) -> None:
        """Release a connection back to the pool."""
        pool.release(connection)

    def close_pool(self, pool: ConnectionPool) -> None:
        """Close all connections in the pool."""
        pool.close(lambda conn: conn.close())

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: Sequence[Any] = (),
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, tuple(params))
