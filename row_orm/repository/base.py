"""Repository - per-model operations.

A Repository binds one domain model to an Engine and exposes the everyday
operations: key lookups, predicate queries, counting, raw statements and
writes. Predicates use ``?`` placeholders bound left to right.

    members = engine.repository(Member)
    members.save(Member(no="M1", name="Ann"))
    ann = members.query_by_primary_key("M1")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from row_orm import validation
from row_orm.core.exceptions import MultipleRowsError
from row_orm.core.params import placeholders
from row_orm.mapping.metadata import ModelMetadata

T = TypeVar("T")


class Repository(Generic[T]):
    """Operations on one domain model, delegating execution to the engine."""

    def __init__(self, engine: Any, model: type[T]) -> None:
        self.engine = engine
        self.model = model

    @property
    def metadata(self) -> ModelMetadata:
        return self.engine.metadata(self.model)  # type: ignore[no-any-return]

    # --- Reads ---

    def query_by_primary_key(self, value: Any, *, include: Sequence[str] = ()) -> T | None:
        """Return the row whose primary key is ``value``, or None."""
        rows: list[T] = (
            self.engine.select(self.model).where_primary_key(value).include(*include).execute()
        )
        if len(rows) > 1:
            raise MultipleRowsError(self.metadata.table_name, len(rows))
        return rows[0] if rows else None

    def query_first(self, predicate: str, *params: Any) -> T | None:
        """First row matching ``predicate``, or None."""
        query = self.engine.select(self.model).where(predicate, *params)
        return query.first()  # type: ignore[no-any-return]

    def query(self, predicate: str, *params: Any, include: Sequence[str] = ()) -> list[T]:
        """All rows matching ``predicate``, with the named relations loaded."""
        query = self.engine.select(self.model).where(predicate, *params)
        return query.include(*include).execute()  # type: ignore[no-any-return]

    def query_all(self, *, include: Sequence[str] = ()) -> list[T]:
        query = self.engine.select(self.model).include(*include)
        return query.execute()  # type: ignore[no-any-return]

    def count(self, predicate: str | None = None, *params: Any) -> int:
        """Number of rows matching ``predicate`` (all rows when omitted)."""
        query = self.engine.select(self.model)
        if predicate is not None:
            query.where(predicate, *params)
        return query.count()  # type: ignore[no-any-return]

    def load_relations(self, entities: Sequence[T], *fields: str) -> Sequence[T]:
        """Populate relation fields on already loaded entities."""
        self.engine.resolve_relations(entities, *fields)
        return entities

    # --- Writes ---

    def execute(self, sql: str, *params: Any) -> int:
        """Run an arbitrary statement on this model's datasource."""
        return self.engine.execute(self.model, sql, *params)  # type: ignore[no-any-return]

    def save(self, entity: T, validate: bool = True) -> T:
        """Insert ``entity``.

        With ``validate`` the installed validator runs first and any violation
        aborts the insert. A primary key left as None is omitted from the
        INSERT and filled from the driver's generated key.

        Raises:
            ValidationException: If ``validate`` is set and violations exist.
        """
        if validate:
            validation.validate(entity)

        metadata = self.metadata
        accessor = metadata.accessor
        values = {
            column: accessor.read(entity, field_name)
            for field_name, column in metadata.columns.items()
        }
        pk = metadata.primary_key
        generated = pk is not None and values[metadata.columns[pk]] is None
        if generated:
            del values[metadata.columns[pk]]

        if values:
            sql = (
                f"INSERT INTO {metadata.table_name} ({', '.join(values)}) "
                f"VALUES ({placeholders(len(values))})"
            )
        else:
            # only a generated key is mapped
            sql = f"INSERT INTO {metadata.table_name} DEFAULT VALUES"
        key = self.engine.insert(self.model, sql, tuple(values.values()))
        if generated and key is not None:
            accessor.write(entity, pk, key)
        return entity

    def save_all(self, entities: Iterable[T], validate: bool = True) -> list[T]:
        """Insert several entities in one transaction.

        Validation covers the whole batch before anything is written.
        """
        entities = list(entities)
        if validate:
            validation.validate_all(entities)
        with self.engine.transaction(self.metadata.datasource):
            return [self.save(entity, validate=False) for entity in entities]

    def update(self, entity: T, validate: bool = True) -> int:
        """Write every mapped field of ``entity`` to the row with its primary key."""
        if validate:
            validation.validate(entity)

        metadata = self.metadata
        pk = metadata.require_primary_key()
        accessor = metadata.accessor
        assignments = {
            column: accessor.read(entity, field_name)
            for field_name, column in metadata.columns.items()
            if field_name != pk
        }
        sql = (
            f"UPDATE {metadata.table_name} SET "
            f"{', '.join(f'{column} = ?' for column in assignments)} "
            f"WHERE {metadata.primary_key_column} = ?"
        )
        return self.execute(sql, *assignments.values(), accessor.read(entity, pk))

    def destroy(self, primary_value: Any) -> int:
        """Delete the row with the given primary key."""
        metadata = self.metadata
        metadata.require_primary_key()
        sql = f"DELETE FROM {metadata.table_name} WHERE {metadata.primary_key_column} = ?"
        return self.execute(sql, primary_value)

    # --- Construction ---

    def new_instance_from(self, raw: Mapping[str, Any], skip_validation: bool = False) -> T:
        """Build an entity from a dict keyed by field or column names.

        Raises:
            ValidationException: Unless ``skip_validation`` is set.
        """
        metadata = self.metadata
        values: dict[str, Any] = {}
        for key, value in raw.items():
            if key in metadata.columns:
                values[key] = value
            else:
                field_name = metadata.field_for(key)
                if field_name is not None:
                    values[field_name] = value
        entity: T = metadata.accessor.build(values)
        if not skip_validation:
            validation.validate(entity)
        return entity
