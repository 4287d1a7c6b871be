"""Name inflection used to derive table and column names.

    underscore("OrderItem")  -> "order_item"
    pluralize("category")    -> "categories"
    tableize("OrderItem")    -> "order_items"
"""

from __future__ import annotations

import re
from functools import lru_cache

DEFAULT_KEY_SUFFIX = "id"

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")

_IRREGULAR = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "mouse": "mice",
    "goose": "geese",
}

_UNCOUNTABLE = frozenset({"equipment", "information", "rice", "money", "species", "series", "news"})

# Checked in order, first match wins
_PLURAL_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(quiz)$"), r"\1zes"),
    (re.compile(r"(matr|vert|ind)(?:ix|ex)$"), r"\1ices"),
    (re.compile(r"(x|ch|ss|sh|zz)$"), r"\1es"),
    (re.compile(r"([^aeiouy]|qu)y$"), r"\1ies"),
    (re.compile(r"(?:([^f])fe|([lr])f)$"), r"\1\2ves"),
    (re.compile(r"sis$"), "ses"),
    (re.compile(r"(bus|status|alias)$"), r"\1es"),
    (re.compile(r"(octop|vir)us$"), r"\1i"),
    (re.compile(r"(buffal|tomat|potat|her)o$"), r"\1oes"),
    (re.compile(r"s$"), "s"),
]


@lru_cache(maxsize=512)
def underscore(word: str) -> str:
    """Convert a CamelCase or mixedCase word to snake_case."""
    word = _ACRONYM_BOUNDARY.sub(r"\1_\2", word)
    word = _WORD_BOUNDARY.sub(r"\1_\2", word)
    return word.replace("-", "_").lower()


@lru_cache(maxsize=512)
def pluralize(word: str) -> str:
    """Pluralize the last segment of an underscored word."""
    head, sep, last = word.rpartition("_")
    lowered = last.lower()
    if not lowered or lowered in _UNCOUNTABLE:
        return word
    if lowered in _IRREGULAR:
        return head + sep + _IRREGULAR[lowered]
    for pattern, replacement in _PLURAL_RULES:
        if pattern.search(lowered):
            return head + sep + pattern.sub(replacement, lowered)
    return head + sep + lowered + "s"


def tableize(class_name: str) -> str:
    """Derive a table name from a class name."""
    return pluralize(underscore(class_name))


def encode_default_key(name: str) -> str:
    """Conventional foreign key column for an owner name: ``member`` -> ``member_id``."""
    return f"{name}_{DEFAULT_KEY_SUFFIX}"
