"""Validation glue.

The rule engine is pluggable: a validator is any callable that takes an object
and returns its violations. One validator is installed process-wide; install a
replacement at startup, before the engine is used from several threads.

The default validator runs pydantic validation: ``BaseModel`` instances are
re-validated from their current field values and dataclasses go through a
``TypeAdapter``, so constraints declared with ``Annotated[..., Field(...)]``
apply. Other objects have no violations.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from row_orm.core.exceptions import ValidationException


@dataclass(frozen=True)
class Violation:
    """One failed constraint on one object."""

    model: type
    message: str
    invalid_value: Any
    property_path: str


Validator = Callable[[Any], Sequence[Violation]]


@lru_cache(maxsize=None)
def _type_adapter(model: type) -> TypeAdapter[Any]:
    return TypeAdapter(model)


def _field_values(obj: Any) -> dict[str, Any]:
    if isinstance(obj, BaseModel):
        names: Iterable[str] = type(obj).model_fields
    else:
        names = (f.name for f in dataclasses.fields(obj))
    return {name: getattr(obj, name) for name in names if hasattr(obj, name)}


def _to_violations(model: type, error: ValidationError) -> list[Violation]:
    return [
        Violation(
            model=model,
            message=detail["msg"],
            invalid_value=detail.get("input"),
            property_path=".".join(str(part) for part in detail["loc"]),
        )
        for detail in error.errors()
    ]


def pydantic_validator(obj: Any) -> list[Violation]:
    """Default validator backed by pydantic."""
    model = type(obj)
    try:
        if isinstance(obj, BaseModel):
            model.model_validate(_field_values(obj))  # type: ignore[attr-defined]
        elif dataclasses.is_dataclass(obj):
            _type_adapter(model).validate_python(_field_values(obj))
    except ValidationError as e:
        return _to_violations(model, e)
    return []


_validator: Validator = pydantic_validator


def install_validator(validator: Validator) -> None:
    """Replace the process-wide validator."""
    global _validator
    _validator = validator


def get_validator() -> Validator:
    return _validator


def validate(obj: Any, suppress: bool = False) -> list[Violation]:
    """Validate one object.

    Raises:
        ValidationException: With every violation, unless ``suppress`` is set.
    """
    violations = list(_validator(obj))
    if violations and not suppress:
        raise ValidationException(violations)
    return violations


def validate_all(objs: Iterable[Any], suppress: bool = False) -> list[Violation]:
    """Validate several objects and aggregate their violations.

    Raises:
        ValidationException: With the violations of all objects, unless
            ``suppress`` is set.
    """
    violations: list[Violation] = []
    for obj in objs:
        violations.extend(_validator(obj))
    if violations and not suppress:
        raise ValidationException(violations)
    return violations
