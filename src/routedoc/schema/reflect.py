from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import inspect
import threading
import types
import typing
import uuid
from typing import Annotated, Any, Optional

from pydantic import BaseModel

from routedoc.errors import TypeDescriptionError
from routedoc.schema.types import (
    ANY,
    BOOL,
    BYTES,
    DECIMAL,
    FLOAT64,
    INT64,
    STRING,
    TIMESTAMP,
    UUID,
    ArrayType,
    FieldSpec,
    Kind,
    MapType,
    OpaqueType,
    PointerType,
    PrimitiveType,
    SliceType,
    StructType,
    TypeDescriptor,
    is_descriptor,
)

# Width markers: `count: Int32` documents as integer/int32 instead of int64.
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]

_SEQUENCE_ORIGINS = {
    list,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Iterable,
    collections.abc.Collection,
}
_MAPPING_ORIGINS = {dict, collections.abc.Mapping, collections.abc.MutableMapping}
_WELL_KNOWN = {
    datetime.datetime: TIMESTAMP,
    uuid.UUID: UUID,
    decimal.Decimal: DECIMAL,
}

_struct_lock = threading.Lock()
_structs: dict[type, StructType] = {}


def describe(tp: Any) -> TypeDescriptor:
    """Turn a Python annotation (or an existing descriptor) into a type descriptor."""
    if is_descriptor(tp):
        return tp

    if tp is Any or tp is object:
        return ANY
    if tp is None or tp is type(None):
        raise TypeDescriptionError("None is only meaningful inside Optional[...]")

    origin = typing.get_origin(tp)
    if origin is not None:
        return _describe_generic(tp, origin)

    if not isinstance(tp, type):
        raise TypeDescriptionError(f"cannot describe {tp!r}")

    if tp in _WELL_KNOWN:
        return _WELL_KNOWN[tp]
    if issubclass(tp, enum.Enum):
        return _enum_type(tp)
    if tp is bool:
        return BOOL
    if tp in (bytes, bytearray):
        return BYTES
    if issubclass(tp, int):
        return INT64 if tp is int else PrimitiveType(Kind.INT64, tp.__name__)
    if issubclass(tp, float):
        return FLOAT64 if tp is float else PrimitiveType(Kind.FLOAT64, tp.__name__)
    if issubclass(tp, str):
        return STRING if tp is str else PrimitiveType(Kind.STRING, tp.__name__)
    if tp in (list, set, frozenset, tuple):
        return SliceType(ANY)
    if tp is dict:
        return MapType(STRING, ANY)
    if tp is collections.abc.Callable or tp is types.FunctionType:
        return OpaqueType(Kind.FUNC, tp.__name__)

    if dataclasses.is_dataclass(tp) or _is_model(tp):
        return _struct_for(tp)

    raise TypeDescriptionError(f"cannot describe {tp.__module__}.{tp.__qualname__}")


def _describe_generic(tp: Any, origin: Any) -> TypeDescriptor:
    args = typing.get_args(tp)

    if origin is Annotated:
        base, *meta = args
        widths = [m for m in meta if isinstance(m, Kind)]
        if widths:
            return _with_width(describe(base), widths[-1], tp)
        return describe(base)

    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and type(None) in args:
            return PointerType(describe(members[0]))
        raise TypeDescriptionError(f"union {tp!r} has no structural equivalent")

    if origin in _SEQUENCE_ORIGINS:
        return SliceType(describe(args[0]) if args else ANY)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SliceType(describe(args[0]))
        if args and all(a == args[0] for a in args):
            return ArrayType(describe(args[0]), len(args))
        raise TypeDescriptionError(f"heterogeneous tuple {tp!r} has no structural equivalent")

    if origin in _MAPPING_ORIGINS:
        if not args:
            return MapType(STRING, ANY)
        return MapType(describe(args[0]), describe(args[1]))

    if origin is collections.abc.Callable:
        return OpaqueType(Kind.FUNC, "func")

    if origin is typing.Literal:
        values = tuple(a.value if isinstance(a, enum.Enum) else a for a in args)
        kinds = {type(v) for v in values}
        if len(kinds) == 1:
            return _restricted(describe(kinds.pop()), values, tp)
        raise TypeDescriptionError(f"mixed literal {tp!r} has no structural equivalent")

    raise TypeDescriptionError(f"cannot describe {tp!r}")


def _with_width(desc: TypeDescriptor, kind: Kind, tp: Any) -> TypeDescriptor:
    if not isinstance(desc, PrimitiveType):
        raise TypeDescriptionError(f"width marker {kind} applied to non-primitive {tp!r}")
    return PrimitiveType(kind, desc.name, desc.enum)


def _restricted(desc: TypeDescriptor, values: tuple[Any, ...], tp: Any) -> PrimitiveType:
    if not isinstance(desc, PrimitiveType):
        raise TypeDescriptionError(f"{tp!r} has non-primitive values")
    return PrimitiveType(desc.kind, desc.name, values)


def _enum_type(tp: type[enum.Enum]) -> PrimitiveType:
    values = tuple(member.value for member in tp)
    kinds = {type(v) for v in values}
    if len(kinds) != 1:
        raise TypeDescriptionError(f"enum {tp.__qualname__} has no members or mixes value types")
    base = _restricted(describe(kinds.pop()), values, tp)
    return PrimitiveType(base.kind, tp.__name__, values)


# ----------------------------
# Structs
# ----------------------------


def _is_model(tp: type) -> bool:
    return issubclass(tp, BaseModel) and tp is not BaseModel


def _struct_for(cls: type) -> StructType:
    with _struct_lock:
        st = _structs.get(cls)
        if st is None:
            loader = (lambda: _model_fields(cls)) if _is_model(cls) else (lambda: _dataclass_fields(cls))
            st = StructType(cls.__qualname__, cls.__module__, loader=loader, origin=cls)
            _structs[cls] = st
        return st


def _embedded_bases(cls: type) -> list[FieldSpec]:
    out: list[FieldSpec] = []
    for base in cls.__bases__:
        if dataclasses.is_dataclass(base) or _is_model(base):
            out.append(FieldSpec(name=base.__name__, type=_struct_for(base), embedded=True))
    return out


def _own_names(cls: type) -> list[str]:
    return list(inspect.get_annotations(cls).keys())


def _dataclass_fields(cls: type) -> tuple[FieldSpec, ...]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as exc:
        raise TypeDescriptionError(f"cannot resolve annotations of {cls.__qualname__}: {exc}") from exc

    own = set(_own_names(cls))
    specs = _embedded_bases(cls)
    for f in dataclasses.fields(cls):
        if f.name not in own:
            continue
        meta = f.metadata or {}
        name = str(meta.get("name", ""))
        specs.append(
            FieldSpec(
                name=f.name,
                type=describe(hints[f.name]),
                serialized_name="" if name == "-" else name,
                skip=name == "-",
                omit_empty=bool(meta.get("omit_empty", False)),
                required=bool(meta.get("required", False)),
                description=str(meta.get("description", "")),
                example=meta.get("example"),
                format=str(meta.get("format", "")),
            )
        )
    return tuple(specs)


def _model_fields(cls: type[BaseModel]) -> tuple[FieldSpec, ...]:
    own = set(_own_names(cls))
    specs = _embedded_bases(cls)
    for name, info in cls.model_fields.items():
        if name not in own:
            continue
        annotation = info.annotation
        widths = [m for m in info.metadata if isinstance(m, Kind)]
        if widths:
            annotation = Annotated[(annotation, *widths)]
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        required = info.is_required()
        specs.append(
            FieldSpec(
                name=name,
                type=describe(annotation),
                serialized_name=info.serialization_alias or info.alias or "",
                skip=bool(info.exclude),
                omit_empty=not required,
                required=required,
                description=info.description or "",
                example=_first(info.examples),
                format=str(extra.get("format", "")),
            )
        )
    return tuple(specs)


def _first(values: Optional[list[Any]]) -> Any:
    return values[0] if values else None
