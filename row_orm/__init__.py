"""row_orm - declare a model once, derive its table, queries and relations."""

from __future__ import annotations

import logging

from row_orm.core.connection import (
    DEFAULT_DATASOURCE,
    ConnectionConfig,
    ConnectionManager,
    DataSources,
)
from row_orm.core.engine import Engine
from row_orm.core.enums import DatabaseBackend, RelationKind
from row_orm.core.exceptions import (
    AdapterError,
    DatabaseError,
    DataSourceNotFoundError,
    ExecutionError,
    MetadataError,
    MultipleRowsError,
    PoolError,
    PredicateMismatchError,
    RowOrmError,
    TransactionError,
    TransactionStateError,
    ValidationException,
)
from row_orm.core.query import Query
from row_orm.core.registry import MetadataRegistry, resolve
from row_orm.core.transaction import TransactionManager
from row_orm.mapping.metadata import (
    ModelMetadata,
    RelationDescriptor,
    belongs_to,
    column,
    domain_model,
    has_many,
    primary_key,
)
from row_orm.mapping.model import ModelMapper
from row_orm.repository.base import Repository
from row_orm.validation import (
    Violation,
    get_validator,
    install_validator,
    validate,
    validate_all,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "DataSources",
    "DEFAULT_DATASOURCE",
    # Engine
    "Engine",
    "Query",
    "Repository",
    # Metadata
    "MetadataRegistry",
    "ModelMetadata",
    "RelationDescriptor",
    "resolve",
    "domain_model",
    "column",
    "primary_key",
    "has_many",
    "belongs_to",
    # Mapping
    "ModelMapper",
    # Transaction
    "TransactionManager",
    # Validation
    "Violation",
    "install_validator",
    "get_validator",
    "validate",
    "validate_all",
    # Enums
    "DatabaseBackend",
    "RelationKind",
    # Exceptions
    "RowOrmError",
    "MetadataError",
    "ExecutionError",
    "PredicateMismatchError",
    "DatabaseError",
    "MultipleRowsError",
    "ValidationException",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "PoolError",
    "DataSourceNotFoundError",
]
