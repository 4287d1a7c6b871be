"""row_orm exception hierarchy.

Driver exceptions are wrapped in DatabaseError and chained through
``__cause__``; they are never retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from row_orm.validation import Violation


class RowOrmError(Exception):
    """Base exception for all row_orm errors."""


# --- Metadata ---


class MetadataError(RowOrmError):
    """Raised when a declared type lacks the structure the engine needs."""

    def __init__(self, model: Any, detail: str) -> None:
        self.model = model
        name = getattr(model, "__name__", str(model))
        super().__init__(f"Invalid domain model {name}: {detail}")


# --- Execution ---


class ExecutionError(RowOrmError):
    """Base for statement execution errors."""


class PredicateMismatchError(ExecutionError):
    """Raised when placeholder and bound parameter counts differ."""

    def __init__(self, sql: str, placeholders: int, params: int) -> None:
        self.sql = sql
        self.placeholders = placeholders
        self.params = params
        super().__init__(
            f"Statement has {placeholders} placeholder(s) but {params} parameter(s) "
            f"were bound: {sql}"
        )


class DatabaseError(ExecutionError):
    """Raised when the driver fails to execute a statement."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Database error for '{sql}': {detail}")


class MultipleRowsError(ExecutionError):
    """Raised when a primary-key lookup returns more than one row."""

    def __init__(self, table_name: str, row_count: int) -> None:
        self.table_name = table_name
        self.row_count = row_count
        super().__init__(
            f"Primary key lookup on '{table_name}' returned {row_count} rows "
            "(expected 0 or 1)"
        )


# --- Validation ---


class ValidationException(RowOrmError):
    """Raised with the complete list of violations for one or more objects."""

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        messages = "; ".join(
            f"{v.model.__name__}.{v.property_path}: {v.message}" for v in self.violations
        )
        super().__init__(f"{len(self.violations)} violation(s): {messages}")


# --- Transaction ---


class TransactionError(RowOrmError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowOrmError):
    """Base for adapter errors."""


class PoolError(AdapterError):
    """Raised when no pooled connection becomes available in time."""


class DataSourceNotFoundError(AdapterError):
    """Raised when a model names a datasource that was never configured."""

    def __init__(self, datasource: str) -> None:
        self.datasource = datasource
        super().__init__(f"Datasource not configured: '{datasource}'")
