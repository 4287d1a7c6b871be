"""Relation Resolver - batch loading of declared relations.

Loading a relation for N entities costs one extra query, never N: the keys of
the whole set go into a single ``IN (...)`` predicate and the rows are
distributed back to their owners in memory.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from row_orm.core.enums import RelationKind
from row_orm.core.exceptions import MetadataError
from row_orm.core.params import placeholders
from row_orm.mapping.metadata import RelationDescriptor

if TYPE_CHECKING:
    from row_orm.core.engine import Engine

logger = logging.getLogger(__name__)


def _unique(values: list[Any]) -> list[Any]:
    """Drop None and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v is not None))


class RelationResolver:
    """Populates relation fields on already loaded entities."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def resolve(self, entities: Sequence[Any], relation: RelationDescriptor) -> None:
        """Populate ``relation.field`` on every entity in ``entities``.

        Raises:
            MetadataError: If the target model cannot be resolved or the
                foreign key has no counterpart on the source model.
        """
        if relation.kind is RelationKind.TO_MANY:
            self._resolve_to_many(entities, relation)
        elif relation.kind is RelationKind.BELONGS_TO:
            self._resolve_belongs_to(entities, relation)
        else:
            raise MetadataError(relation.source, f"unsupported relation kind {relation.kind}")

    def _fetch(
        self, target: type, column: str, keys: list[Any]
    ) -> list[tuple[dict[str, Any], Any]]:
        """One ``WHERE column IN (...)`` query; returns ``(row, entity)`` pairs."""
        metadata = self._engine.metadata(target)
        sql = (
            f"SELECT * FROM {metadata.table_name} "
            f"WHERE {column} IN ({placeholders(len(keys))})"
        )
        logger.debug("Batch loading %s for %d key(s)", metadata.table_name, len(keys))
        rows = self._engine.fetch_rows(target, sql, keys)
        mapper = self._engine.mapper(target)
        return [(row, mapper.map_one(row)) for row in rows]

    def _resolve_to_many(self, entities: Sequence[Any], relation: RelationDescriptor) -> None:
        source = self._engine.metadata(relation.source)
        pk_field = source.require_primary_key()
        accessor = source.accessor
        target = relation.target_model

        keys = _unique([accessor.read(entity, pk_field) for entity in entities])
        partitions: dict[Any, list[Any]] = {}
        if keys:
            for row, child in self._fetch(target, relation.foreign_key, keys):
                partitions.setdefault(row[relation.foreign_key], []).append(child)

        for entity in entities:
            key = accessor.read(entity, pk_field)
            accessor.write(entity, relation.field, list(partitions.get(key, ())))

    def _resolve_belongs_to(self, entities: Sequence[Any], relation: RelationDescriptor) -> None:
        source = self._engine.metadata(relation.source)
        fk_field = source.field_for(relation.foreign_key)
        if fk_field is None:
            raise MetadataError(
                relation.source,
                f"relation '{relation.field}' needs a field mapped to column "
                f"'{relation.foreign_key}'",
            )
        accessor = source.accessor
        target = self._engine.metadata(relation.target_model)
        target_pk = target.require_primary_key()

        keys = _unique([accessor.read(entity, fk_field) for entity in entities])
        parents: dict[Any, Any] = {}
        if keys:
            for _, parent in self._fetch(target.model, target.columns[target_pk], keys):
                parents.setdefault(target.accessor.read(parent, target_pk), parent)

        for entity in entities:
            key = accessor.read(entity, fk_field)
            accessor.write(entity, relation.field, parents.get(key))
