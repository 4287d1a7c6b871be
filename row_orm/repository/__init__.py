"""Repository layer - per-model operations."""

from __future__ import annotations

from row_orm.repository.base import Repository

__all__ = [
    "Repository",
]
