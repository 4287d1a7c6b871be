"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from row_orm import validation
from row_orm.core.connection import ConnectionConfig
from row_orm.core.engine import Engine
from row_orm.core.registry import MetadataRegistry


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1, pool_timeout=0.2)


@pytest.fixture
def engine(sqlite_config: ConnectionConfig) -> Iterator[Engine]:
    """Engine over one in-memory SQLite database with a fresh metadata registry."""
    eng = Engine.from_config(sqlite_config, registry=MetadataRegistry())
    yield eng
    eng.close()


@pytest.fixture
def run_ddl(engine: Engine):
    """Helper to run schema statements directly on the default datasource.

    Usage:
        run_ddl("CREATE TABLE members (no TEXT PRIMARY KEY, name TEXT)")
    """

    def _run(*statements: str) -> None:
        with engine.datasources.get().get_connection() as conn:
            for statement in statements:
                conn.execute(statement)
            conn.commit()

    return _run


@pytest.fixture
def statement_log(engine: Engine) -> list[tuple[str, tuple[Any, ...]]]:
    """Record every statement the engine sends to the adapter."""
    adapter = engine.datasources.get().adapter
    log: list[tuple[str, tuple[Any, ...]]] = []
    original = adapter.execute

    def _execute(connection: Any, sql: str, params: Any = ()) -> Any:
        log.append((sql, tuple(params)))
        return original(connection, sql, params)

    adapter.execute = _execute
    return log


@pytest.fixture
def restore_validator() -> Iterator[None]:
    """Put the process-wide validator back after a test replaces it."""
    previous = validation.get_validator()
    yield
    validation.install_validator(previous)
