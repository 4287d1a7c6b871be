"""Domain model declaration and metadata resolution.

A class becomes a domain model by passing through ``@domain_model``. The
decorator records a :class:`DomainModel` declaration on the class and registers
it by name so relations can refer to models that are declared later.

    @domain_model(primary_key="no")
    @dataclass
    class Member:
        no: str
        name: str | None = None
        mobile: str | None = column("mobile_no", default=None)
        orders: list[Order] = has_many("Order")

:func:`resolve_metadata` turns a declaration into an immutable
:class:`ModelMetadata`. It is pure; caching lives in
:class:`row_orm.core.registry.MetadataRegistry`.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeVar, overload

from pydantic import BaseModel

from row_orm.core.connection import DEFAULT_DATASOURCE
from row_orm.core.enums import RelationKind
from row_orm.core.exceptions import MetadataError
from row_orm.mapping.naming import encode_default_key, tableize, underscore

T = TypeVar("T")

DEFAULT_PRIMARY_KEY = "id"

_MARKER_KEY = "row_orm"
_DECLARATION_ATTR = "__domain_model__"

_declared_models: dict[str, type] = {}


# --- Declarations ---


@dataclass(frozen=True)
class RelationDeclaration:
    """Relation as written by the user; ``target`` may be a class or a model name."""

    kind: RelationKind
    target: type | str
    foreign_key: str | None = None


@dataclass(frozen=True)
class FieldMarker:
    """Field-level overrides carried in dataclass field metadata."""

    column: str | None = None
    primary_key: bool = False
    relation: RelationDeclaration | None = None


@dataclass(frozen=True)
class DomainModel:
    """Class-level declaration recorded by ``@domain_model``."""

    table_name: str | None = None
    datasource: str | None = None
    primary_key: str | None = None
    columns: Mapping[str, str] = field(default_factory=dict)
    relations: Mapping[str, RelationDeclaration] = field(default_factory=dict)


@overload
def domain_model(cls: type[T], /) -> type[T]: ...


@overload
def domain_model(
    *,
    table_name: str | None = None,
    datasource: str | None = None,
    primary_key: str | None = None,
    columns: Mapping[str, str] | None = None,
    relations: Mapping[str, RelationDeclaration] | None = None,
) -> Callable[[type[T]], type[T]]: ...


def domain_model(
    cls: type[T] | None = None,
    /,
    *,
    table_name: str | None = None,
    datasource: str | None = None,
    primary_key: str | None = None,
    columns: Mapping[str, str] | None = None,
    relations: Mapping[str, RelationDeclaration] | None = None,
) -> Any:
    """Declare a class as a domain model.

    Usable bare (``@domain_model``) or with overrides. Apply it on top of
    ``@dataclass`` so the dataclass fields exist when the declaration is read.
    """
    declaration = DomainModel(
        table_name=table_name,
        datasource=datasource,
        primary_key=primary_key,
        columns=dict(columns or {}),
        relations=dict(relations or {}),
    )

    def _register(target: type[T]) -> type[T]:
        setattr(target, _DECLARATION_ATTR, declaration)
        _declared_models[target.__name__] = target
        return target

    if cls is not None:
        return _register(cls)
    return _register


def registered_model(name: str) -> type:
    """Look up a declared model class by its class name."""
    try:
        return _declared_models[name]
    except KeyError:
        raise MetadataError(name, "no domain model registered under this name") from None


def column(name: str, **field_kwargs: Any) -> Any:
    """Dataclass field with an explicit column name."""
    return dataclasses.field(metadata={_MARKER_KEY: FieldMarker(column=name)}, **field_kwargs)


def primary_key(column: str | None = None, **field_kwargs: Any) -> Any:
    """Dataclass field marked as the primary key."""
    marker = FieldMarker(column=column, primary_key=True)
    return dataclasses.field(metadata={_MARKER_KEY: marker}, **field_kwargs)


def has_many(target: type | str, *, foreign_key: str | None = None) -> Any:
    """Dataclass field holding the collection of ``target`` rows that point back here."""
    relation = RelationDeclaration(RelationKind.TO_MANY, target, foreign_key)
    return dataclasses.field(
        default_factory=list, metadata={_MARKER_KEY: FieldMarker(relation=relation)}
    )


def belongs_to(target: type | str, *, foreign_key: str | None = None) -> Any:
    """Dataclass field holding the ``target`` row this one references."""
    relation = RelationDeclaration(RelationKind.BELONGS_TO, target, foreign_key)
    return dataclasses.field(default=None, metadata={_MARKER_KEY: FieldMarker(relation=relation)})


# --- Resolved metadata ---


@dataclass(frozen=True)
class RelationDescriptor:
    """Resolved relation from ``source`` to ``target``.

    ``foreign_key`` is a column on the target table for TO_MANY and a column on
    the source table for BELONGS_TO.
    """

    kind: RelationKind
    source: type
    field: str
    target: type | str
    foreign_key: str

    @property
    def target_model(self) -> type:
        if isinstance(self.target, str):
            return registered_model(self.target)
        return self.target


class FieldAccessor:
    """Builds instances of one model and reads/writes its fields."""

    def __init__(self, model: type, defaults: Mapping[str, Callable[[], Any]]) -> None:
        self._model = model
        self._defaults = defaults
        self._is_pydantic = issubclass(model, BaseModel)

    def build(self, values: Mapping[str, Any]) -> Any:
        """Create an instance without running ``__init__`` or validation.

        Fields missing from ``values`` take their declared default.
        """
        if self._is_pydantic:
            return self._model.model_construct(**values)  # type: ignore[attr-defined]

        instance = self._model.__new__(self._model)
        for name, default in self._defaults.items():
            if name not in values:
                object.__setattr__(instance, name, default())
        for name, value in values.items():
            object.__setattr__(instance, name, value)
        return instance

    def read(self, instance: Any, name: str) -> Any:
        return getattr(instance, name, None)

    def write(self, instance: Any, name: str, value: Any) -> None:
        if self._is_pydantic:
            setattr(instance, name, value)
        else:
            object.__setattr__(instance, name, value)


@dataclass(frozen=True)
class ModelMetadata:
    """Structural facts about one domain model. Never mutated after creation."""

    model: type
    table_name: str
    datasource: str
    primary_key: str | None
    columns: Mapping[str, str]
    relations: Mapping[str, RelationDescriptor]
    accessor: FieldAccessor = field(compare=False, repr=False)

    @property
    def primary_key_column(self) -> str | None:
        if self.primary_key is None:
            return None
        return self.columns[self.primary_key]

    def require_primary_key(self) -> str:
        """Return the primary key field, or fail for key-less models."""
        if self.primary_key is None:
            raise MetadataError(self.model, "no primary key field declared or named 'id'")
        return self.primary_key

    def column_for(self, field_name: str) -> str:
        try:
            return self.columns[field_name]
        except KeyError:
            raise MetadataError(self.model, f"'{field_name}' is not a mapped field") from None

    def field_for(self, column_name: str) -> str | None:
        for field_name, col in self.columns.items():
            if col == column_name:
                return field_name
        return None

    def relation(self, field_name: str) -> RelationDescriptor:
        try:
            return self.relations[field_name]
        except KeyError:
            raise MetadataError(self.model, f"'{field_name}' is not a declared relation") from None


@dataclass(frozen=True)
class _DeclaredField:
    name: str
    marker: FieldMarker | None
    default: Callable[[], Any]


def _none() -> None:
    return None


def _dataclass_default(f: dataclasses.Field[Any]) -> Callable[[], Any]:
    if f.default is not dataclasses.MISSING:
        value = f.default
        return lambda: value
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory
    return _none


def _class_default(model: type, name: str) -> Callable[[], Any]:
    if not hasattr(model, name):
        return _none
    value = getattr(model, name)
    return lambda: value


def _declared_fields(model: type) -> list[_DeclaredField]:
    """List persistent-candidate fields in declaration order."""
    if dataclasses.is_dataclass(model):
        return [
            _DeclaredField(f.name, f.metadata.get(_MARKER_KEY), _dataclass_default(f))
            for f in dataclasses.fields(model)
        ]

    if issubclass(model, BaseModel):
        fields = model.model_fields  # type: ignore[attr-defined]
        return [_DeclaredField(name, None, _none) for name in fields]

    names: dict[str, None] = {}
    for klass in reversed(model.__mro__):
        if klass is object:
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            if name.startswith("_") or "ClassVar" in str(annotation):
                continue
            names[name] = None
    return [_DeclaredField(name, None, _class_default(model, name)) for name in names]


def _describe_relation(
    model: type, field_name: str, declaration: RelationDeclaration
) -> RelationDescriptor:
    foreign_key = declaration.foreign_key
    if foreign_key is None:
        if declaration.kind is RelationKind.TO_MANY:
            owner = model.__name__
        else:
            target = declaration.target
            owner = target if isinstance(target, str) else target.__name__
        foreign_key = encode_default_key(underscore(owner))
    return RelationDescriptor(
        kind=declaration.kind,
        source=model,
        field=field_name,
        target=declaration.target,
        foreign_key=foreign_key,
    )


def resolve_metadata(model: type) -> ModelMetadata:
    """Derive :class:`ModelMetadata` from a declared class.

    Raises:
        MetadataError: If ``model`` was not declared with ``@domain_model`` or
            its declaration names fields it does not have.
    """
    declaration = vars(model).get(_DECLARATION_ATTR) if isinstance(model, type) else None
    if not isinstance(declaration, DomainModel):
        raise MetadataError(model, "missing @domain_model declaration")

    declared = _declared_fields(model)
    field_names = {f.name for f in declared}
    for name in (*declaration.columns, *declaration.relations):
        if name not in field_names:
            raise MetadataError(model, f"override refers to unknown field '{name}'")

    columns: dict[str, str] = {}
    relations: dict[str, RelationDescriptor] = {}
    marked_keys: list[str] = []

    for f in declared:
        marker = f.marker
        relation = declaration.relations.get(f.name) or (marker.relation if marker else None)
        if relation is not None:
            relations[f.name] = _describe_relation(model, f.name, relation)
            continue
        if marker is not None and marker.primary_key:
            marked_keys.append(f.name)
        columns[f.name] = (
            declaration.columns.get(f.name)
            or (marker.column if marker else None)
            or underscore(f.name)
        )

    if declaration.primary_key is not None:
        if declaration.primary_key not in columns:
            raise MetadataError(
                model, f"primary key '{declaration.primary_key}' is not a mapped field"
            )
        if declaration.primary_key not in marked_keys:
            marked_keys.append(declaration.primary_key)

    if len(marked_keys) > 1:
        raise MetadataError(model, f"more than one primary key marked: {marked_keys}")

    if marked_keys:
        pk: str | None = marked_keys[0]
    elif DEFAULT_PRIMARY_KEY in columns:
        pk = DEFAULT_PRIMARY_KEY
    else:
        pk = None

    defaults = {f.name: f.default for f in declared}
    return ModelMetadata(
        model=model,
        table_name=declaration.table_name or tableize(model.__name__),
        datasource=declaration.datasource or DEFAULT_DATASOURCE,
        primary_key=pk,
        columns=MappingProxyType(columns),
        relations=MappingProxyType(relations),
        accessor=FieldAccessor(model, defaults),
    )
