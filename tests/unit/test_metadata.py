"""Unit tests for domain model declaration and metadata resolution."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from row_orm.core.connection import DEFAULT_DATASOURCE
from row_orm.core.enums import RelationKind
from row_orm.core.exceptions import MetadataError
from row_orm.mapping.metadata import (
    RelationDeclaration,
    belongs_to,
    column,
    domain_model,
    has_many,
    primary_key,
    registered_model,
    resolve_metadata,
)


@domain_model
@dataclass
class Customer:
    id: int | None = None
    first_name: str = ""
    emailAddress: str = ""
    invoices: list = has_many("Invoice")


@domain_model(table_name="billing_invoices", datasource="billing")
@dataclass
class Invoice:
    number: str = primary_key()
    customer_id: int | None = None
    total: float = column("amount_total", default=0.0)
    customer: Customer | None = belongs_to(Customer)


@domain_model(primary_key="code", columns={"label": "display_label"})
@dataclass
class Currency:
    code: str
    label: str = ""


@domain_model
@dataclass
class AuditEntry:
    message: str = ""
    created_at: str = ""


@domain_model
class Warehouse(BaseModel):
    id: int
    city: str


@domain_model(relations={"shelves": RelationDeclaration(RelationKind.TO_MANY, "Shelf")})
class Aisle:
    id: int
    name: str = "unnamed"
    shelves: list


@dataclass
class Undeclared:
    id: int


class TestTableAndDatasource:
    def test_default_table_name_is_tableized_class_name(self) -> None:
        assert resolve_metadata(Customer).table_name == "customers"
        assert resolve_metadata(AuditEntry).table_name == "audit_entries"

    def test_explicit_table_name(self) -> None:
        assert resolve_metadata(Invoice).table_name == "billing_invoices"

    def test_default_datasource(self) -> None:
        assert resolve_metadata(Customer).datasource == DEFAULT_DATASOURCE

    def test_explicit_datasource(self) -> None:
        assert resolve_metadata(Invoice).datasource == "billing"


class TestPrimaryKey:
    def test_conventional_id(self) -> None:
        metadata = resolve_metadata(Customer)
        assert metadata.primary_key == "id"
        assert metadata.primary_key_column == "id"

    def test_marked_field(self) -> None:
        assert resolve_metadata(Invoice).primary_key == "number"

    def test_declared_on_decorator(self) -> None:
        assert resolve_metadata(Currency).primary_key == "code"

    def test_missing_primary_key_does_not_fail_resolution(self) -> None:
        metadata = resolve_metadata(AuditEntry)
        assert metadata.primary_key is None
        assert metadata.primary_key_column is None

    def test_require_primary_key_fails_for_keyless_model(self) -> None:
        with pytest.raises(MetadataError, match="no primary key"):
            resolve_metadata(AuditEntry).require_primary_key()

    def test_two_primary_keys_rejected(self) -> None:
        @domain_model(primary_key="a")
        @dataclass
        class TwoKeys:
            a: int = 0
            b: int = primary_key(default=0)

        with pytest.raises(MetadataError, match="more than one primary key"):
            resolve_metadata(TwoKeys)

    def test_unknown_primary_key_rejected(self) -> None:
        @domain_model(primary_key="missing")
        @dataclass
        class BadKey:
            a: int = 0

        with pytest.raises(MetadataError, match="primary key 'missing'"):
            resolve_metadata(BadKey)


class TestColumns:
    def test_columns_are_underscored_field_names(self) -> None:
        columns = resolve_metadata(Customer).columns
        assert dict(columns) == {
            "id": "id",
            "first_name": "first_name",
            "emailAddress": "email_address",
        }

    def test_column_marker_override(self) -> None:
        assert resolve_metadata(Invoice).column_for("total") == "amount_total"

    def test_decorator_column_override(self) -> None:
        assert resolve_metadata(Currency).column_for("label") == "display_label"

    def test_columns_keep_declaration_order(self) -> None:
        assert list(resolve_metadata(Invoice).columns) == ["number", "customer_id", "total"]

    def test_field_for_column(self) -> None:
        metadata = resolve_metadata(Invoice)
        assert metadata.field_for("amount_total") == "total"
        assert metadata.field_for("nope") is None

    def test_unknown_column_override_rejected(self) -> None:
        @domain_model(columns={"ghost": "ghost_col"})
        @dataclass
        class Haunted:
            id: int = 0

        with pytest.raises(MetadataError, match="unknown field 'ghost'"):
            resolve_metadata(Haunted)

    def test_column_for_unmapped_field(self) -> None:
        with pytest.raises(MetadataError, match="not a mapped field"):
            resolve_metadata(Customer).column_for("invoices")


class TestRelations:
    def test_relation_fields_are_not_columns(self) -> None:
        metadata = resolve_metadata(Customer)
        assert "invoices" not in metadata.columns
        assert "invoices" in metadata.relations

    def test_to_many_default_foreign_key(self) -> None:
        relation = resolve_metadata(Customer).relation("invoices")
        assert relation.kind is RelationKind.TO_MANY
        assert relation.foreign_key == "customer_id"
        assert relation.target_model is Invoice

    def test_belongs_to_default_foreign_key(self) -> None:
        relation = resolve_metadata(Invoice).relation("customer")
        assert relation.kind is RelationKind.BELONGS_TO
        assert relation.foreign_key == "customer_id"
        assert relation.target_model is Customer

    def test_unknown_relation(self) -> None:
        with pytest.raises(MetadataError, match="not a declared relation"):
            resolve_metadata(Customer).relation("orders")

    def test_unregistered_target(self) -> None:
        with pytest.raises(MetadataError):
            resolve_metadata(Aisle).relation("shelves").target_model


class TestModelKinds:
    def test_pydantic_model(self) -> None:
        metadata = resolve_metadata(Warehouse)
        assert metadata.table_name == "warehouses"
        assert metadata.primary_key == "id"
        assert dict(metadata.columns) == {"id": "id", "city": "city"}

    def test_plain_class_uses_annotations(self) -> None:
        metadata = resolve_metadata(Aisle)
        assert dict(metadata.columns) == {"id": "id", "name": "name"}
        assert metadata.relations["shelves"].foreign_key == "aisle_id"

    def test_undeclared_class_is_rejected(self) -> None:
        with pytest.raises(MetadataError, match="missing @domain_model"):
            resolve_metadata(Undeclared)

    def test_non_class_is_rejected(self) -> None:
        with pytest.raises(MetadataError):
            resolve_metadata(object())  # type: ignore[arg-type]

    def test_subclass_needs_its_own_declaration(self) -> None:
        @dataclass
        class VipCustomer(Customer):
            level: int = 0

        with pytest.raises(MetadataError):
            resolve_metadata(VipCustomer)

    def test_registration_by_name(self) -> None:
        assert registered_model("Invoice") is Invoice


class TestPurity:
    def test_repeated_resolution_is_equal(self) -> None:
        first, second = resolve_metadata(Invoice), resolve_metadata(Invoice)
        assert first is not second
        assert first.table_name == second.table_name
        assert first.primary_key == second.primary_key
        assert dict(first.columns) == dict(second.columns)
        assert dict(first.relations) == dict(second.relations)

    def test_metadata_is_read_only(self) -> None:
        metadata = resolve_metadata(Customer)
        with pytest.raises(TypeError):
            metadata.columns["id"] = "other"  # type: ignore[index]


class TestAccessor:
    def test_build_fills_defaults(self) -> None:
        invoice = resolve_metadata(Invoice).accessor.build({"number": "I-1"})
        assert invoice.number == "I-1"
        assert invoice.total == 0.0
        assert invoice.customer is None

    def test_build_uses_default_factory(self) -> None:
        a = resolve_metadata(Customer).accessor.build({})
        b = resolve_metadata(Customer).accessor.build({})
        assert a.invoices == []
        assert a.invoices is not b.invoices

    def test_build_plain_class_keeps_class_defaults(self) -> None:
        aisle = resolve_metadata(Aisle).accessor.build({"id": 3})
        assert aisle.id == 3
        assert aisle.name == "unnamed"

    def test_read_and_write(self) -> None:
        accessor = resolve_metadata(Currency).accessor
        currency = Currency(code="EUR")
        accessor.write(currency, "label", "Euro")
        assert accessor.read(currency, "label") == "Euro"
