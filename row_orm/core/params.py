"""Positional parameter handling.

Statements are written with ``?`` placeholders. Before dispatch the number of
placeholders is checked against the bound parameters and the placeholders are
converted to the adapter's paramstyle. A ``?`` inside a quoted string literal
or a quoted identifier is text, not a placeholder.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from row_orm.core.exceptions import PredicateMismatchError

_QUOTES = ("'", '"', "`")


def _tokenize(sql: str) -> list[tuple[str, str]]:
    """Split ``sql`` into ``('quoted', ...)`` and ``('code', ...)`` tokens.

    Quoted runs use doubled quotes as escapes (``'it''s'``). An unterminated
    quote extends to the end of the statement.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(sql)
    last = 0

    while i < n:
        quote = sql[i]
        if quote not in _QUOTES:
            i += 1
            continue
        if i > last:
            tokens.append(("code", sql[last:i]))
        j = i + 1
        while j < n:
            if sql[j] == quote:
                j += 1
                if j >= n or sql[j] != quote:
                    break
            j += 1
        tokens.append(("quoted", sql[i:j]))
        last = i = j

    if last < n:
        tokens.append(("code", sql[last:]))
    return tokens


@lru_cache(maxsize=512)
def count_placeholders(sql: str) -> int:
    """Count ``?`` placeholders outside quoted literals and identifiers."""
    return sum(text.count("?") for kind, text in _tokenize(sql) if kind == "code")


@lru_cache(maxsize=512)
def _convert_to_format(sql: str, escape_percent: bool) -> str:
    """Convert ``?`` to ``%s``, escaping literal ``%`` as ``%%`` when asked."""
    parts: list[str] = []
    for kind, text in _tokenize(sql):
        if escape_percent:
            text = text.replace("%", "%%")
        if kind == "code":
            text = text.replace("?", "%s")
        parts.append(text)
    return "".join(parts)


def normalize_params(sql: str, paramstyle: str, escape_percent: bool = True) -> str:
    """Convert ``?`` placeholders to the target paramstyle.

    Args:
        sql: SQL string with ``?`` placeholders.
        paramstyle: ``'qmark'`` (no conversion) or ``'format'`` (``%s``).
        escape_percent: Double literal ``%`` for drivers that unescape ``%%``
            (psycopg). mysql-connector substitutes ``%s`` only and sends
            every other ``%`` as written.
    """
    if paramstyle == "qmark":
        return sql
    return _convert_to_format(sql, escape_percent)


def check_params(sql: str, params: Sequence[Any]) -> tuple[Any, ...]:
    """Return ``params`` as a tuple after checking it matches the placeholders.

    Raises:
        PredicateMismatchError: If the counts differ.
    """
    expected = count_placeholders(sql)
    if expected != len(params):
        raise PredicateMismatchError(sql, expected, len(params))
    return tuple(params)


def placeholders(count: int) -> str:
    """``?, ?, ?`` for an IN list or VALUES clause of ``count`` items."""
    return ", ".join("?" * count)
