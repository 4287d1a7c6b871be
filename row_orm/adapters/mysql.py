"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from row_orm.adapters.pool import ConnectionPool
from row_orm.core.connection import ConnectionConfig


class MysqlAdapter:
    """Synchronous MySQL adapter using mysql-connector-python."""

    @property
    def paramstyle(self) -> str:
        return "format"

    @property
    def escape_percent(self) -> bool:
        # the connector only rewrites %s, never %%
        return False

    def create_pool(self, config: ConnectionConfig) -> ConnectionPool:
        """Create a pool of MySQL connections."""
        import mysql.connector

        return ConnectionPool(
            mysql.connector.connect(
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password,
                database=config.database,
                **config.extra,
            )
            for _ in range(config.pool_size)
        )

    def acquire_connection(self, pool: ConnectionPool, timeout: float | None = None) -> Any:
        """Acquire a connection from the pool."""
        return pool.acquire(timeout)

    def release_connection(self, connection: Any, pool: ConnectionPool) -> None:
        """Release a connection back to the pool."""
        pool.release(connection)

    def close_pool(self, pool: ConnectionPool) -> None:
        """Close all connections in the pool."""
        pool.close(lambda conn: conn.close())

    def execute(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] = (),
    ) -> Any:
        """Execute SQL and return a cursor with dictionary results."""
        cursor = connection.cursor(dictionary=True)
        cursor.execute(sql, tuple(params))
        return cursor
