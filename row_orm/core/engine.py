"""Query execution engine.

The Engine resolves the datasource of a domain model, checks and converts the
statement's placeholders, executes it on a pooled connection (or on the
connection of the enclosing transaction) and maps result rows back into model
instances.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from row_orm.core.connection import DEFAULT_DATASOURCE, ConnectionConfig, DataSources
from row_orm.core.exceptions import DatabaseError
from row_orm.core.params import check_params, normalize_params
from row_orm.core.query import Query
from row_orm.core.registry import MetadataRegistry, default_registry
from row_orm.core.transaction import TransactionManager, current_transaction
from row_orm.mapping.metadata import ModelMetadata
from row_orm.mapping.model import ModelMapper
from row_orm.mapping.relation import RelationResolver
from row_orm.repository.base import Repository

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    # Already dicts (psycopg dict_row, MySQL dictionary cursor)
    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]

    return [dict(zip(columns, row, strict=True)) for row in rows]


def _rowcount(cursor: Any) -> int:
    return int(cursor.rowcount)


def _lastrowid(cursor: Any) -> Any:
    return getattr(cursor, "lastrowid", None)


class Engine:
    """Synchronous execution engine for declared domain models."""

    def __init__(
        self,
        datasources: DataSources,
        registry: MetadataRegistry | None = None,
    ) -> None:
        self._datasources = datasources
        self._registry = registry if registry is not None else default_registry()
        self._relations = RelationResolver(self)

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig | Mapping[str, ConnectionConfig],
        registry: MetadataRegistry | None = None,
    ) -> Engine:
        """Create an Engine from one ConnectionConfig or a name->config mapping.

        A single config becomes the default datasource.
        """
        return cls(DataSources.from_config(config), registry)

    @property
    def datasources(self) -> DataSources:
        return self._datasources

    @property
    def registry(self) -> MetadataRegistry:
        return self._registry

    def metadata(self, model: type) -> ModelMetadata:
        """Resolved metadata of ``model``."""
        return self._registry.resolve(model)

    def mapper(self, model: type[T]) -> ModelMapper[T]:
        return ModelMapper(self._registry.resolve(model))

    def select(self, model: type[T]) -> Query[T]:
        """Start a query against ``model``'s table."""
        return Query(model, self)

    def repository(self, model: type[T]) -> Repository[T]:
        """Per-model operations bound to this engine."""
        return Repository(self, model)

    # --- Execution ---

    def _run(
        self,
        model: type,
        sql: str,
        params: Sequence[Any],
        consume: Callable[[Any], R],
    ) -> R:
        metadata = self._registry.resolve(model)
        bound = check_params(sql, params)
        manager = self._datasources.get(metadata.datasource)
        adapter = manager.adapter
        driver_sql = normalize_params(sql, adapter.paramstyle, adapter.escape_percent)
        logger.debug("[%s] %s (%d params)", metadata.datasource, sql, len(bound))

        transaction = current_transaction(metadata.datasource)
        if transaction is not None:
            conn = transaction.connection
            return self._dispatch(adapter, conn, sql, driver_sql, bound, consume)

        with manager.get_connection() as conn:
            try:
                result = self._dispatch(adapter, conn, sql, driver_sql, bound, consume)
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
            return result

    @staticmethod
    def _dispatch(
        adapter: Any,
        conn: Any,
        sql: str,
        driver_sql: str,
        params: tuple[Any, ...],
        consume: Callable[[Any], R],
    ) -> R:
        try:
            cursor = adapter.execute(conn, driver_sql, params)
            return consume(cursor)
        except Exception as e:
            raise DatabaseError(sql, str(e)) from e

    def fetch_rows(
        self, model: type, sql: str, params: Sequence[Any] = ()
    ) -> list[dict[str, Any]]:
        """Run a SELECT on ``model``'s datasource and return raw row dicts."""
        return self._run(model, sql, params, _rows_to_dicts)

    def query(self, model: type[T], sql: str, params: Sequence[Any] = ()) -> list[T]:
        """Run a SELECT and map each row into a new ``model`` instance."""
        rows = self.fetch_rows(model, sql, params)
        return self.mapper(model).map_many(rows)

    def fetch_scalar(
        self,
        model: type,
        sql: str,
        params: Sequence[Any] = (),
        *,
        column: str | None = None,
    ) -> Any:
        """Read one value from the first row: ``column`` if given, else the first column."""
        rows = self.fetch_rows(model, sql, params)
        if not rows:
            return None
        row = rows[0]
        if column is not None:
            return row.get(column)
        return next(iter(row.values()))

    def execute(self, model: type, sql: str, *params: Any) -> int:
        """Execute a write statement. Returns the affected row count."""
        return self._run(model, sql, params, _rowcount)

    def insert(self, model: type, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute an INSERT. Returns the driver's generated key, if it reports one."""
        return self._run(model, sql, params, _lastrowid)

    # --- Relations ---

    def resolve_relations(self, entities: Sequence[Any], *fields: str) -> None:
        """Populate the named relation fields on ``entities``, one query per relation."""
        if not entities:
            return
        metadata = self._registry.resolve(type(entities[0]))
        for name in fields:
            self._relations.resolve(entities, metadata.relation(name))

    # --- Transactions ---

    def transaction(self, datasource: str = DEFAULT_DATASOURCE) -> TransactionManager:
        """Create a transaction context manager for ``datasource``."""
        return TransactionManager(self._datasources.get(datasource), datasource)

    def with_transaction(
        self,
        unit_of_work: Callable[..., R],
        *args: Any,
        datasource: str = DEFAULT_DATASOURCE,
        **kwargs: Any,
    ) -> R:
        """Run ``unit_of_work`` inside a transaction and return its result."""
        with self.transaction(datasource):
            return unit_of_work(*args, **kwargs)

    def close(self) -> None:
        """Close every datasource pool."""
        self._datasources.close()
