"""Mapping layer - declarations, metadata and row-to-object mapping."""

from __future__ import annotations

from row_orm.mapping.metadata import (
    DomainModel,
    FieldAccessor,
    ModelMetadata,
    RelationDeclaration,
    RelationDescriptor,
    belongs_to,
    column,
    domain_model,
    has_many,
    primary_key,
    resolve_metadata,
)
from row_orm.mapping.model import ModelMapper
from row_orm.mapping.naming import pluralize, tableize, underscore
from row_orm.mapping.relation import RelationResolver

__all__ = [
    "domain_model",
    "column",
    "primary_key",
    "has_many",
    "belongs_to",
    "DomainModel",
    "RelationDeclaration",
    "ModelMetadata",
    "RelationDescriptor",
    "FieldAccessor",
    "resolve_metadata",
    "ModelMapper",
    "RelationResolver",
    "underscore",
    "pluralize",
    "tableize",
]
