"""Blocking connection pool shared by the adapters."""

from __future__ import annotations

import queue
from collections.abc import Callable, Iterable
from typing import Any

from row_orm.core.exceptions import PoolError


class ConnectionPool:
    """Fixed set of connections handed out one caller at a time.

    ``acquire`` blocks until a connection is returned or the timeout elapses.
    ``len(pool)`` is the number of idle connections.
    """

    def __init__(self, connections: Iterable[Any]) -> None:
        self._idle: queue.LifoQueue[Any] = queue.LifoQueue()
        self._all: list[Any] = []
        for connection in connections:
            self._all.append(connection)
            self._idle.put(connection)

    def acquire(self, timeout: float | None = None) -> Any:
        try:
            return self._idle.get(timeout=timeout)
        except queue.Empty:
            raise PoolError(
                f"No connection available after {timeout}s ({len(self._all)} in pool)"
            ) from None

    def release(self, connection: Any) -> None:
        self._idle.put(connection)

    def close(self, closer: Callable[[Any], None]) -> None:
        """Close every connection, idle or not, and empty the pool."""
        for connection in self._all:
            closer(connection)
        self._all.clear()
        while not self._idle.empty():
            self._idle.get_nowait()

    def __len__(self) -> int:
        return self._idle.qsize()
