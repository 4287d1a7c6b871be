"""PostgreSQL adapter using psycopg (v3+)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from row_orm.adapters.pool import ConnectionPool
from row_orm.core.connection import ConnectionConfig


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


class PostgresqlAdapter:
    """Synchronous PostgreSQL adapter using psycopg (v3+)."""

    @property
    def paramstyle(self) -> str:
        return "format"

    @property
    def escape_percent(self) -> bool:
        return True

    def create_pool(self, config: ConnectionConfig) -> ConnectionPool:
        import psycopg
        import psycopg.rows

        conninfo = _build_conninfo(config)
        return ConnectionPool(
            psycopg.connect(conninfo, row_factory=psycopg.rows.dict_row, **config.extra)
            for _ in range(config.pool_size)
        )

    def acquire_connection(self, pool: ConnectionPool, timeout: float | None = None) -> Any:
        return pool.acquire(timeout)

    def release_connection(self, connection: Any, pool: ConnectionPool) -> None:
        pool.release(connection)

    def close_pool(self, pool: ConnectionPool) -> None:
        pool.close(lambda conn: conn.close())

    def execute(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] = (),
    ) -> Any:
        return connection.execute(sql, tuple(params))
