"""Enumerations shared across the engine."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


class RelationKind(Enum):
    """Kinds of declared association between two domain models."""

    TO_MANY = "to_many"
    BELONGS_TO = "belongs_to"
