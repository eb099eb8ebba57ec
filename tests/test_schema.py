"""Tests for header and sheet-name derivation."""

import os
import sys
from dataclasses import dataclass
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sheet_mapper import (
    ArgumentError,
    Column,
    SchemaError,
    column,
    column_descriptors,
    decode,
    derive_headers,
    derive_sheet_name,
    register_schema,
    unregister_schema,
)
from tests.sample_records import Employee, Person, Point, Product, User


@pytest.fixture
def point_schema():
    register_schema(Point, ["x", "y"], sheet_name="Points")
    yield
    unregister_schema(Point)


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

class TestDeriveHeaders:
    def test_declaration_order(self):
        assert derive_headers(User) == ["id", "name", "active"]

    def test_explicit_headers_used_verbatim(self):
        assert derive_headers(User, ["name", "unknown"]) == ["name", "unknown"]

    def test_explicit_headers_skip_introspection(self):
        # plain objects have no schema, explicit headers still work
        assert derive_headers(object, ["a"]) == ["a"]

    def test_column_metadata_renames_and_ignores(self):
        assert derive_headers(Product) == ["SKU", "Unit Price", "tags"]

    def test_inherited_fields_follow_parent_order(self):
        headers = derive_headers(Employee)
        assert headers[:2] == ["id", "name"]
        assert headers[-1] == "team"

    def test_registered_schema(self, point_schema):
        assert derive_headers(Point) == ["x", "y"]

    def test_none_type_rejected(self):
        with pytest.raises(ArgumentError):
            derive_headers(None)


class TestColumnDescriptors:
    def test_orders_and_types(self):
        cols = column_descriptors(User)
        assert [c.order for c in cols] == [0, 1, 2]
        assert [c.type for c in cols] == [int, str, bool]
        assert all(c.attribute == c.name for c in cols)

    def test_renamed_column_keeps_attribute(self):
        price = column_descriptors(Product)[1]
        assert price.name == "Unit Price"
        assert price.field_name == "price"
        assert price.formatter is not None

    def test_registered_types_from_annotations(self, point_schema):
        assert [c.type for c in column_descriptors(Point)] == [int, int]

    def test_registered_schema_takes_precedence(self):
        register_schema(User, [Column("Login", attribute="name")])
        try:
            assert derive_headers(User) == ["Login"]
        finally:
            unregister_schema(User)
        assert derive_headers(User) == ["id", "name", "active"]

    def test_computed_column_has_no_field_name(self):
        col = Column("Label", attribute=lambda r: f"#{r.id}")
        assert col.field_name is None

    def test_plain_class_without_schema(self):
        with pytest.raises(SchemaError):
            column_descriptors(Point)

    def test_dataclass_without_fields(self):
        @dataclass
        class Empty:
            pass

        with pytest.raises(SchemaError):
            column_descriptors(Empty)

    def test_all_fields_ignored(self):
        @dataclass
        class Hidden:
            secret: str = column(ignore=True, default="")

        with pytest.raises(SchemaError):
            derive_headers(Hidden)

    def test_duplicate_column_names(self):
        @dataclass
        class Clash:
            a: int = column("Value")
            b: int = column("Value")

        with pytest.raises(SchemaError, match="Duplicate"):
            column_descriptors(Clash)

    def test_register_duplicate_names(self):
        with pytest.raises(SchemaError):
            register_schema(Point, ["x", "x"])

    def test_register_empty(self):
        with pytest.raises(SchemaError):
            register_schema(Point, [])

    def test_empty_column_name(self):
        with pytest.raises(SchemaError):
            Column("")


# ---------------------------------------------------------------------------
# Sheet names
# ---------------------------------------------------------------------------

class TestDeriveSheetName:
    def test_declared(self):
        assert derive_sheet_name(Person) == "People"

    def test_absent(self):
        assert derive_sheet_name(User) is None

    def test_not_inherited(self):
        assert derive_sheet_name(Employee) is None

    def test_registered(self, point_schema):
        assert derive_sheet_name(Point) == "Points"

    def test_none(self):
        assert derive_sheet_name(None) is None


# ---------------------------------------------------------------------------
# String annotations
# ---------------------------------------------------------------------------

class TestStringAnnotations:
    def test_resolvable_module_annotations(self):
        from tests.forward_records import Entry
        cols = column_descriptors(Entry)
        assert [c.type for c in cols][:2] == [int, Decimal]

    def test_unresolvable_mapped_field(self):
        from tests.forward_records import make_tagged
        with pytest.raises(SchemaError, match="tag"):
            column_descriptors(make_tagged())

    def test_other_fields_resolve_when_one_does_not(self):
        from tests.forward_records import make_memo
        memo_type = make_memo()
        cols = column_descriptors(memo_type)
        assert [c.name for c in cols] == ["id", "amount"]
        assert [c.type for c in cols] == [int, Decimal]
        assert decode(["7", "1.5"], ["id", "amount"], memo_type) == memo_type(7, Decimal("1.5"))

    def test_decode_never_passes_annotation_text_through(self):
        from tests.forward_records import make_tagged
        with pytest.raises(SchemaError):
            decode(["7", ""], ["id", "tag"], make_tagged())
