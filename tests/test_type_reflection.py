from __future__ import annotations

import datetime
import decimal
import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional, Union

import pytest
from pydantic import BaseModel, Field

from routedoc.errors import TypeDescriptionError
from routedoc.schema.reflect import Int32, describe
from routedoc.schema.types import (
    ANY,
    BYTES,
    DECIMAL,
    FLOAT64,
    INT64,
    STRING,
    TIMESTAMP,
    UUID,
    ArrayType,
    Kind,
    MapType,
    PointerType,
    PrimitiveType,
    SliceType,
    StructType,
)


@dataclass
class Base:
    id: int


@dataclass
class Item(Base):
    title: str
    price: Optional[float] = None
    _cursor: str = ""
    secret: str = field(default="", metadata={"name": "-"})
    label: str = field(default="", metadata={"name": "display", "omit_empty": True, "description": "Label"})


class Account(BaseModel):
    account_id: str = Field(alias="accountId", description="Account key", examples=["acc_1"])
    balance: Int32 = 0
    password: str = Field(default="", exclude=True)
    owner: Optional[str] = None


def test_primitives():
    assert describe(int) == INT64
    assert describe(float) == FLOAT64
    assert describe(str) == STRING
    assert describe(bool).kind is Kind.BOOL
    assert describe(Int32).kind is Kind.INT32
    assert describe(Any) == ANY


def test_well_known_structs():
    assert describe(datetime.datetime) is TIMESTAMP
    assert describe(uuid.UUID) is UUID
    assert describe(decimal.Decimal) is DECIMAL


def test_containers():
    assert describe(Optional[str]) == PointerType(STRING)
    assert describe(list[int]) == SliceType(INT64)
    assert describe(tuple[str, ...]) == SliceType(STRING)
    assert describe(tuple[int, int, int]) == ArrayType(INT64, 3)
    assert describe(dict[str, float]) == MapType(STRING, FLOAT64)
    assert describe(bytes) == BYTES
    assert BYTES.is_bytes


def test_callables_describe_as_func_kind():
    assert describe(Callable[[int], int]).kind is Kind.FUNC


def test_shapes_without_equivalent_are_rejected():
    with pytest.raises(TypeDescriptionError):
        describe(Union[int, str])
    with pytest.raises(TypeDescriptionError):
        describe(tuple[int, str])
    with pytest.raises(TypeDescriptionError):
        describe(None)


def test_dataclass_fields():
    st = describe(Item)
    assert isinstance(st, StructType)
    assert st.name == "Item"
    assert describe(Item) == st

    by_name = {f.name: f for f in st.fields}
    assert [f.name for f in st.fields] == ["Base", "title", "price", "_cursor", "secret", "label"]

    assert by_name["Base"].embedded
    assert by_name["Base"].type == describe(Base)
    assert by_name["price"].type == PointerType(FLOAT64)
    assert not by_name["_cursor"].exported
    assert by_name["secret"].skip
    assert by_name["label"].json_name == "display"
    assert by_name["label"].omit_empty
    assert by_name["label"].description == "Label"


def test_pydantic_model_fields():
    st = describe(Account)
    by_name = {f.name: f for f in st.fields}

    acct = by_name["account_id"]
    assert acct.json_name == "accountId"
    assert acct.required and not acct.omit_empty
    assert acct.description == "Account key"
    assert acct.example == "acc_1"

    assert by_name["balance"].type.kind is Kind.INT32
    assert by_name["balance"].omit_empty
    assert by_name["password"].skip
    assert by_name["owner"].type == PointerType(STRING)


class Status(enum.IntEnum):
    ACTIVE = 1
    DISABLED = 2


def test_literals_and_enums_keep_their_values():
    assert describe(Literal["a", "b"]) == PrimitiveType(Kind.STRING, "", ("a", "b"))
    assert describe(Status) == PrimitiveType(Kind.INT64, "Status", (1, 2))
    assert describe(Literal[Status.ACTIVE]).enum == (1,)

    with pytest.raises(TypeDescriptionError):
        describe(Literal["a", 1])
