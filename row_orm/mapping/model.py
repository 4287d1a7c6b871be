"""Row-to-model mapper driven by resolved metadata.

Mapping is by column name, so the order of columns in the result does not
matter. Columns that match no mapped field are ignored; fields whose column is
absent from the row keep their declared default.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from row_orm.mapping.metadata import ModelMetadata

T = TypeVar("T")


class ModelMapper(Generic[T]):
    """Builds instances of one domain model from row dicts.

    Args:
        metadata: Resolved metadata of the target model.
    """

    def __init__(self, metadata: ModelMetadata) -> None:
        self._metadata = metadata
        self._fields_by_column = {col: name for name, col in metadata.columns.items()}

    @property
    def metadata(self) -> ModelMetadata:
        return self._metadata

    def map_one(self, row: Mapping[str, Any]) -> T:
        """Map a single row to a new model instance."""
        values = {
            self._fields_by_column[column]: value
            for column, value in row.items()
            if column in self._fields_by_column
        }
        return self._metadata.accessor.build(values)  # type: ignore[no-any-return]

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows via map_one, preserving row order."""
        return [self.map_one(row) for row in rows]
