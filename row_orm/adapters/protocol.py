"""Database adapter protocol.

Every adapter module implements this protocol, so the engine never touches a
driver directly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from row_orm.core.connection import ConnectionConfig


@runtime_checkable
class Adapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style the driver expects: 'qmark' (?) or 'format' (%s)."""
        ...

    @property
    def escape_percent(self) -> bool:
        """Whether literal ``%`` must be sent as ``%%`` under the 'format' style."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any, timeout: float | None = None) -> Any:
        """Acquire a connection from the pool, blocking up to ``timeout`` seconds."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] = (),
    ) -> Any:
        """Execute SQL with positional parameters and return a DB-API cursor."""
        ...
