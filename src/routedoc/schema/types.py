"""
Structural type descriptors.

The schema builder never looks at Python annotations directly; it walks this
closed set of descriptors instead. routedoc.schema.reflect produces them from
annotations, and callers (framework adapters, tests) may build them by hand.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union


class Kind(str, enum.Enum):
    BOOL = "bool"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    POINTER = "pointer"
    SLICE = "slice"
    ARRAY = "array"
    MAP = "map"
    INTERFACE = "interface"
    STRUCT = "struct"
    FUNC = "func"
    CHAN = "chan"

    def __str__(self) -> str:
        return self.value


PRIMITIVE_KINDS = frozenset(
    {
        Kind.BOOL,
        Kind.INT8,
        Kind.INT16,
        Kind.INT32,
        Kind.INT64,
        Kind.UINT8,
        Kind.UINT16,
        Kind.UINT32,
        Kind.UINT64,
        Kind.FLOAT32,
        Kind.FLOAT64,
        Kind.STRING,
    }
)

# kinds whose zero value can stand for "absent"; fields of these kinds are optional by default
OPTIONAL_KINDS = frozenset({Kind.POINTER, Kind.SLICE, Kind.MAP, Kind.INTERFACE})


class WellKnown(str, enum.Enum):
    TIMESTAMP = "timestamp"
    UUID = "uuid"
    DECIMAL = "decimal"


@dataclass(frozen=True)
class PrimitiveType:
    kind: Kind
    name: str = ""
    enum: tuple[Any, ...] = ()  # allowed values, empty means unrestricted

    def __post_init__(self) -> None:
        if self.kind not in PRIMITIVE_KINDS:
            raise ValueError(f"{self.kind} is not a primitive kind")

    def __str__(self) -> str:
        return self.name or self.kind.value


@dataclass(frozen=True)
class PointerType:
    elem: "TypeDescriptor"
    kind: Kind = Kind.POINTER

    def __str__(self) -> str:
        return f"*{self.elem}"


@dataclass(frozen=True)
class SliceType:
    elem: "TypeDescriptor"
    kind: Kind = Kind.SLICE

    @property
    def is_bytes(self) -> bool:
        return getattr(self.elem, "kind", None) is Kind.UINT8

    def __str__(self) -> str:
        return f"[]{self.elem}"


@dataclass(frozen=True)
class ArrayType:
    elem: "TypeDescriptor"
    length: int
    kind: Kind = Kind.ARRAY

    def __str__(self) -> str:
        return f"[{self.length}]{self.elem}"


@dataclass(frozen=True)
class MapType:
    key: "TypeDescriptor"
    value: "TypeDescriptor"
    kind: Kind = Kind.MAP

    def __str__(self) -> str:
        return f"map[{self.key}]{self.value}"


@dataclass(frozen=True)
class InterfaceType:
    name: str = "any"
    kind: Kind = Kind.INTERFACE

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class OpaqueType:
    """A shape with no schema equivalent (functions, channels, ...)."""

    kind: Kind
    name: str = ""

    def __str__(self) -> str:
        return self.name or self.kind.value


@dataclass(frozen=True)
class FieldSpec:
    """
    Per-field metadata, computed once when the struct descriptor is built.

    serialized_name "" means "use the Python name"; skip drops the field.
    """

    name: str
    type: "TypeDescriptor"
    serialized_name: str = ""
    skip: bool = False
    embedded: bool = False
    omit_empty: bool = False
    required: bool = False
    description: str = ""
    example: Any = None
    format: str = ""

    @property
    def exported(self) -> bool:
        return not self.name.startswith("_")

    @property
    def json_name(self) -> str:
        return self.serialized_name or self.name


class StructType:
    """
    A struct with ordered fields.

    Fields are resolved lazily through `loader` so that self-referential and
    mutually recursive classes can be described before their fields are walked.
    Identity follows `origin` (the Python class) when given, otherwise the
    descriptor object itself.
    """

    kind = Kind.STRUCT

    def __init__(
        self,
        name: str = "",
        module: str = "",
        fields: Optional[tuple[FieldSpec, ...]] = None,
        *,
        loader: Optional[Callable[[], tuple[FieldSpec, ...]]] = None,
        origin: Any = None,
        well_known: Optional[WellKnown] = None,
    ) -> None:
        self.name = name
        self.module = module
        self.origin = origin
        self.well_known = well_known
        self._fields = tuple(fields) if fields is not None else None
        self._loader = loader

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        if self._fields is None:
            self._fields = tuple(self._loader()) if self._loader is not None else ()
            self._loader = None
        return self._fields

    def set_fields(self, fields: tuple[FieldSpec, ...]) -> None:
        # hand-built recursive structs need the descriptor before its fields exist
        self._fields = tuple(fields)
        self._loader = None

    @property
    def is_named(self) -> bool:
        return bool(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructType):
            return NotImplemented
        if self.origin is not None or other.origin is not None:
            return self.origin is other.origin
        return self is other

    def __hash__(self) -> int:
        return hash(("struct", id(self.origin))) if self.origin is not None else id(self)

    def __repr__(self) -> str:
        return f"StructType({self})"

    def __str__(self) -> str:
        if not self.name:
            return "struct{...}"
        return f"{self.module}.{self.name}" if self.module else self.name


TypeDescriptor = Union[
    PrimitiveType,
    PointerType,
    SliceType,
    ArrayType,
    MapType,
    InterfaceType,
    StructType,
    OpaqueType,
]

DESCRIPTOR_CLASSES = (
    PrimitiveType,
    PointerType,
    SliceType,
    ArrayType,
    MapType,
    InterfaceType,
    StructType,
    OpaqueType,
)


def is_descriptor(value: Any) -> bool:
    return isinstance(value, DESCRIPTOR_CLASSES)


# Convenience constructors, mostly for adapters and tests.
BOOL = PrimitiveType(Kind.BOOL)
INT32 = PrimitiveType(Kind.INT32)
INT64 = PrimitiveType(Kind.INT64)
UINT8 = PrimitiveType(Kind.UINT8)
FLOAT32 = PrimitiveType(Kind.FLOAT32)
FLOAT64 = PrimitiveType(Kind.FLOAT64)
STRING = PrimitiveType(Kind.STRING)
BYTES = SliceType(UINT8)
ANY = InterfaceType()

TIMESTAMP = StructType("datetime", "datetime", (), well_known=WellKnown.TIMESTAMP)
UUID = StructType("UUID", "uuid", (), well_known=WellKnown.UUID)
DECIMAL = StructType("Decimal", "decimal", (), well_known=WellKnown.DECIMAL)
