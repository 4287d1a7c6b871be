"""Connection configuration and datasource management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager owns one adapter-created pool; DataSources maps datasource
names to managers so each domain model reaches the database it declares.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from row_orm.core.enums import DatabaseBackend
from row_orm.core.exceptions import AdapterError, DataSourceNotFoundError

DEFAULT_DATASOURCE = "default"


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = 5
    pool_timeout: float = 30.0
    extra: dict[str, Any] = {}


# Adapter module mapping: backend -> (module_path, class_name)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("row_orm.adapters.sqlite", "SqliteAdapter"),
    DatabaseBackend.POSTGRESQL: ("row_orm.adapters.postgresql", "PostgresqlAdapter"),
    DatabaseBackend.MYSQL: ("row_orm.adapters.mysql", "MysqlAdapter"),
}


def _load_adapter(driver: str) -> Any:
    """Load an adapter by driver name."""
    try:
        backend = DatabaseBackend(driver.lower())
    except ValueError:
        raise AdapterError(f"Unsupported database driver: {driver}") from None

    module_path, cls_name = _ADAPTER_MAP[backend]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e


class ConnectionManager:
    """Connection manager for one datasource, using the Adapter protocol."""

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config.driver)
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    def initialize_pool(self) -> Any:
        """Initialize the connection pool."""
        if self._pool is None:
            self._pool = self._adapter.create_pool(self.config)
        return self._pool

    def acquire(self) -> Any:
        """Take a connection from the pool, blocking up to ``pool_timeout``.

        Raises:
            PoolError: If no connection becomes available in time.
        """
        if self._pool is None:
            self.initialize_pool()
        return self._adapter.acquire_connection(self._pool, self.config.pool_timeout)

    def release(self, connection: Any) -> None:
        """Return a connection to the pool."""
        self._adapter.release_connection(connection, self._pool)

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Get a connection from the pool as a context manager."""
        connection = self.acquire()
        try:
            yield connection
        finally:
            self.release(connection)

    def close_pool(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._adapter.close_pool(self._pool)
            self._pool = None


class DataSources:
    """Connection managers keyed by datasource name."""

    def __init__(self, managers: Mapping[str, ConnectionManager] | None = None) -> None:
        self._managers: dict[str, ConnectionManager] = dict(managers or {})

    @classmethod
    def from_config(
        cls, config: ConnectionConfig | Mapping[str, ConnectionConfig]
    ) -> DataSources:
        """Build datasources from one config (the default) or a name->config mapping."""
        if isinstance(config, ConnectionConfig):
            config = {DEFAULT_DATASOURCE: config}
        return cls({name: ConnectionManager(cfg) for name, cfg in config.items()})

    def register(self, name: str, manager: ConnectionManager) -> None:
        self._managers[name] = manager

    def get(self, name: str = DEFAULT_DATASOURCE) -> ConnectionManager:
        try:
            return self._managers[name]
        except KeyError:
            raise DataSourceNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._managers

    def close(self) -> None:
        """Close every pool."""
        for manager in self._managers.values():
            manager.close_pool()
