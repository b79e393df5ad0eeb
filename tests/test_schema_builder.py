from __future__ import annotations

import datetime
import decimal
import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional

import pytest

from routedoc.errors import RecursiveInlineStructError, UnsupportedMapKeyError, UnsupportedTypeError
from routedoc.openapi.model import SchemaNode
from routedoc.schema.builder import DECIMAL_DESCRIPTION, SchemaBuilder, component_name
from routedoc.schema.reflect import Int32, describe
from routedoc.schema.types import FieldSpec, INT64, PointerType, StructType

REF = "#/components/schemas/"


@dataclass
class Address:
    street: str
    city: str


@dataclass
class User:
    id: int
    name: str
    address: Address
    home: Optional[Address] = None
    nickname: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    score: Int32 = 0
    note: str = field(default="", metadata={"omit_empty": True})
    code: str = field(default="", metadata={"omit_empty": True, "required": True})
    _internal: str = ""
    hidden: str = field(default="", metadata={"name": "-"})
    display: str = field(default="", metadata={"name": "display_name", "description": "Shown in UI"})


class Color(str, enum.Enum):
    RED = "red"
    BLUE = "blue"


@dataclass
class Filters:
    owner: Optional[str] = field(default=None, metadata={"required": True})
    labels: list[str] = field(default_factory=list, metadata={"required": True})
    extra: dict[str, str] = field(default_factory=dict)
    sample: list[int] = field(default_factory=list, metadata={"example": []})
    color: Color = Color.RED
    mode: Literal["fast", "slow"] = "fast"


@dataclass
class TreeNode:
    value: int
    children: list[TreeNode] = field(default_factory=list)
    parent: Optional[TreeNode] = None


@dataclass
class Employee:
    name: str
    department: Optional[Department] = None


@dataclass
class Department:
    title: str
    staff: list[Employee] = field(default_factory=list)


@dataclass
class Audited:
    created_by: str


@dataclass
class Invoice(Audited):
    total: decimal.Decimal
    issued_at: datetime.datetime
    ref: uuid.UUID
    billing: Address = field(metadata={"description": "Billing address"})
    shipping: Optional[Address] = None


def test_primitive_mapping():
    b = SchemaBuilder()
    assert b.schema_for(int) == SchemaNode(type="integer", format="int64")
    assert b.schema_for(Int32) == SchemaNode(type="integer", format="int32")
    assert b.schema_for(float) == SchemaNode(type="number", format="double")
    assert b.schema_for(bool) == SchemaNode(type="boolean")
    assert b.schema_for(str) == SchemaNode(type="string")
    assert b.schema_for(bytes) == SchemaNode(type="string", format="byte")
    assert b.schema_for(Any) == SchemaNode(type="object")
    assert b.components == {}


def test_struct_component_and_required_inference():
    b = SchemaBuilder()
    ref = b.schema_for(User)

    name = component_name(describe(User))
    assert name == "test_schema_builder_User"
    assert ref.ref == REF + name

    schema = b.components[name]
    assert schema.type == "object"
    assert schema.required == ["id", "name", "address", "score", "code", "display_name"]
    assert list(schema.properties) == [
        "id",
        "name",
        "address",
        "home",
        "nickname",
        "tags",
        "score",
        "note",
        "code",
        "display_name",
    ]

    props = schema.properties
    assert props["address"].ref == REF + "test_schema_builder_Address"
    assert props["tags"] == SchemaNode(type="array", items=SchemaNode(type="string"))
    assert props["score"].format == "int32"
    assert props["display_name"].description == "Shown in UI"


def test_nullable_wrapping_never_mutates_cached_nodes():
    b = SchemaBuilder()
    b.schema_for(User)
    props = b.components["test_schema_builder_User"].properties

    assert props["nickname"] == SchemaNode(type="string", nullable=True)

    home = props["home"]
    assert home.nullable is True
    assert home.all_of == [SchemaNode.reference("test_schema_builder_Address")]

    cached = b.cache.get(describe(Address))
    assert cached.nullable is None
    assert props["address"].nullable is None


def test_component_is_shared_across_uses():
    b = SchemaBuilder()
    first = b.schema_for(Address)
    second = b.schema_for(Address)
    b.schema_for(User)

    assert first is second
    assert list(b.components) == ["test_schema_builder_Address", "test_schema_builder_User"]


def test_self_recursion_terminates():
    b = SchemaBuilder()
    ref = b.schema_for(TreeNode)

    schema = b.components[ref.component_name]
    assert schema.properties["children"].items == ref
    assert schema.properties["parent"].all_of == [ref]
    assert schema.required == ["value"]


def test_mutual_recursion_terminates():
    b = SchemaBuilder()
    b.schema_for(Employee)

    emp = b.components["test_schema_builder_Employee"]
    dept = b.components["test_schema_builder_Department"]
    assert emp.properties["department"].all_of == [SchemaNode.reference("test_schema_builder_Department")]
    assert dept.properties["staff"].items == SchemaNode.reference("test_schema_builder_Employee")


def test_well_known_formats_and_embedding():
    b = SchemaBuilder()
    b.schema_for(Invoice)
    schema = b.components["test_schema_builder_Invoice"]

    assert schema.all_of == [SchemaNode.reference("test_schema_builder_Audited")]
    assert "created_by" not in schema.properties

    total = schema.properties["total"]
    assert (total.type, total.format) == ("string", "decimal")
    assert total.description == DECIMAL_DESCRIPTION
    assert total.example == "123.45"
    assert schema.properties["issued_at"] == SchemaNode(type="string", format="date-time")
    assert schema.properties["ref"] == SchemaNode(type="string", format="uuid")

    # description on a referenced struct goes through an allOf wrapper
    billing = schema.properties["billing"]
    assert billing.description == "Billing address"
    assert billing.all_of == [SchemaNode.reference("test_schema_builder_Address")]


def test_maps():
    b = SchemaBuilder()
    node = b.schema_for(dict[str, int])
    assert node.type == "object"
    assert node.additional_properties == SchemaNode(type="integer", format="int64")

    with pytest.raises(UnsupportedMapKeyError):
        b.schema_for(dict[int, str])


def test_func_kind_is_unsupported():
    with pytest.raises(UnsupportedTypeError) as exc_info:
        SchemaBuilder().schema_for(Callable[[], None])
    assert "func" in str(exc_info.value)


def test_anonymous_structs_are_inlined():
    anon = StructType(fields=(FieldSpec("x", INT64),))
    b = SchemaBuilder()

    node = b.schema_for(anon)
    assert node.type == "object"
    assert list(node.properties) == ["x"]
    assert b.components == {}


def test_anonymous_self_reference_is_rejected():
    anon = StructType()
    anon.set_fields((FieldSpec("next", PointerType(anon)),))

    with pytest.raises(RecursiveInlineStructError):
        SchemaBuilder().schema_for(anon)


def test_component_name_collisions_get_suffixes():
    a = StructType("Item", "pkg.catalog", (FieldSpec("sku", INT64),))
    b_ = StructType("Item", "pkg.catalog", (FieldSpec("code", INT64),))

    b = SchemaBuilder()
    assert b.schema_for(a).ref == REF + "catalog_Item"
    assert b.schema_for(b_).ref == REF + "catalog_Item_2"
    assert b.schema_for(a).ref == REF + "catalog_Item"


def test_explicit_type_wins():
    b = SchemaBuilder()
    assert b.schema_from_types(str, int) == SchemaNode(type="string")
    assert b.schema_from_types(None, int) == SchemaNode(type="integer", format="int64")
    assert b.schema_from_types(None, None) is None


def test_required_marker_applies_to_optional_kinds():
    b = SchemaBuilder()
    b.schema_for(Filters)
    schema = b.components["test_schema_builder_Filters"]

    assert schema.required == ["owner", "labels", "color", "mode"]


def test_empty_example_is_kept():
    b = SchemaBuilder()
    b.schema_for(Filters)
    sample = b.components["test_schema_builder_Filters"].properties["sample"]

    assert sample.model_dump(mode="json", by_alias=True) == {
        "type": "array",
        "items": {"type": "integer", "format": "int64"},
        "example": [],
    }


def test_enum_and_literal_values():
    b = SchemaBuilder()
    b.schema_for(Filters)
    props = b.components["test_schema_builder_Filters"].properties

    assert props["color"].model_dump(mode="json", by_alias=True) == {"type": "string", "enum": ["red", "blue"]}
    assert props["mode"].enum == ["fast", "slow"]
    assert b.schema_for(Literal[1, 2]) == SchemaNode(type="integer", format="int64", enum=[1, 2])
