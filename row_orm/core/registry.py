"""Metadata Registry - caches resolved metadata per domain model.

The registry fills lazily: the first ``resolve`` for a class runs the resolver
and publishes the result, every later call returns that same object. Reads of
an already published entry take no lock.
"""

from __future__ import annotations

import logging
import threading

from row_orm.mapping.metadata import ModelMetadata, resolve_metadata

logger = logging.getLogger(__name__)


class MetadataRegistry:
    """Process-lifetime cache of :class:`ModelMetadata`, keyed by class.

    There is no eviction: a class's declaration cannot change after import.
    """

    def __init__(self) -> None:
        self._metadata: dict[type, ModelMetadata] = {}
        self._lock = threading.Lock()

    def resolve(self, model: type) -> ModelMetadata:
        """Return the metadata for ``model``, resolving it on first use.

        Raises:
            MetadataError: If ``model`` is not a declared domain model.
        """
        metadata = self._metadata.get(model)
        if metadata is not None:
            return metadata

        with self._lock:
            metadata = self._metadata.get(model)
            if metadata is None:
                metadata = resolve_metadata(model)
                self._metadata[model] = metadata
                logger.debug(
                    "Resolved %s -> table=%s datasource=%s primary_key=%s",
                    model.__name__,
                    metadata.table_name,
                    metadata.datasource,
                    metadata.primary_key,
                )
        return metadata

    def __contains__(self, model: object) -> bool:
        return model in self._metadata

    def __len__(self) -> int:
        """Number of resolved models."""
        return len(self._metadata)


_default_registry = MetadataRegistry()


def default_registry() -> MetadataRegistry:
    """The registry shared by engines that are not given their own."""
    return _default_registry


def resolve(model: type) -> ModelMetadata:
    """Resolve ``model`` through the default registry."""
    return _default_registry.resolve(model)
