"""Query builder.

Accumulates the projection, predicate, parameters, ordering and limit of one
SELECT against a domain model's table. Parameter values are never written
into the SQL text; they travel separately and are checked against the ``?``
placeholders when the query executes.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from row_orm.core.engine import Engine

T = TypeVar("T")

COUNT_ALIAS = "_count"


class Query(Generic[T]):
    """SELECT builder for one domain model, executed through an Engine."""

    def __init__(self, model: type[T], engine: Engine) -> None:
        self._model = model
        self._engine = engine
        self._projection = "*"
        self._predicate: str | None = None
        self._params: tuple[Any, ...] = ()
        self._order_by: str | None = None
        self._limit: int | None = None
        self._offset: int | None = None
        self._includes: tuple[str, ...] = ()

    def select(self, *columns: str) -> Query[T]:
        """Set the projection; no columns means ``*``."""
        self._projection = ", ".join(columns) if columns else "*"
        return self

    def where(self, predicate: str, *params: Any) -> Query[T]:
        """Add a predicate with ``?`` placeholders and its parameters.

        Repeated calls are combined with AND; parameters keep call order.
        """
        if self._predicate is None:
            self._predicate = predicate
        else:
            self._predicate = f"({self._predicate}) AND ({predicate})"
        self._params += params
        return self

    def where_primary_key(self, value: Any) -> Query[T]:
        """Restrict to the row whose primary key equals ``value``."""
        metadata = self._engine.metadata(self._model)
        metadata.require_primary_key()
        return self.where(f"{metadata.primary_key_column} = ?", value)

    def order_by(self, clause: str) -> Query[T]:
        self._order_by = clause
        return self

    def limit(self, count: int) -> Query[T]:
        self._limit = int(count)
        return self

    def offset(self, count: int) -> Query[T]:
        """Skip the first ``count`` rows. SQLite and MySQL need a limit as well."""
        self._offset = int(count)
        return self

    def include(self, *relations: str) -> Query[T]:
        """Load the named relation fields after the main query."""
        self._includes += relations
        return self

    @property
    def params(self) -> tuple[Any, ...]:
        return self._params

    def build(self, projection: str | None = None) -> tuple[str, tuple[Any, ...]]:
        """Return ``(sql, params)``.

        A ``projection`` override builds an aggregate query, which drops the
        ordering, limit and offset.
        """
        metadata = self._engine.metadata(self._model)
        sql = f"SELECT {projection or self._projection} FROM {metadata.table_name}"
        if self._predicate:
            sql += f" WHERE {self._predicate}"
        if projection is None:
            if self._order_by:
                sql += f" ORDER BY {self._order_by}"
            if self._limit is not None:
                sql += f" LIMIT {self._limit}"
            if self._offset is not None:
                sql += f" OFFSET {self._offset}"
        return sql, self._params

    def execute(self) -> list[T]:
        """Run the query and map every row."""
        sql, params = self.build()
        entities: list[T] = self._engine.query(self._model, sql, params)
        if self._includes and entities:
            self._engine.resolve_relations(entities, *self._includes)
        return entities

    def first(self) -> T | None:
        """Run the query with ``LIMIT 1``; None when nothing matches."""
        query = copy.copy(self)
        query._limit = 1
        rows = query.execute()
        return rows[0] if rows else None

    def count(self) -> int:
        """Count the rows matching the predicate."""
        sql, params = self.build(projection=f"COUNT(*) AS {COUNT_ALIAS}")
        value = self._engine.fetch_scalar(self._model, sql, params, column=COUNT_ALIAS)
        return 0 if value is None else int(value)
