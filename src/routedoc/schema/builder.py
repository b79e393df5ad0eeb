from __future__ import annotations

import logging
import re
from typing import Any, Optional

from routedoc.errors import (
    RecursiveInlineStructError,
    UnsupportedMapKeyError,
    UnsupportedTypeError,
)
from routedoc.hooks.engine import HookEngine
from routedoc.openapi.model import SchemaNode
from routedoc.schema.reflect import describe
from routedoc.schema.types import (
    OPTIONAL_KINDS,
    ArrayType,
    FieldSpec,
    InterfaceType,
    Kind,
    MapType,
    PointerType,
    PrimitiveType,
    SliceType,
    StructType,
    TypeDescriptor,
    WellKnown,
)

logger = logging.getLogger(__name__)

_UNSAFE_NAME = re.compile(r"[-. \[\]<>,]")

DECIMAL_DESCRIPTION = "Decimal number represented as string for precision"
DECIMAL_EXAMPLE = "123.45"

_PRIMITIVES: dict[Kind, tuple[str, Optional[str]]] = {
    Kind.BOOL: ("boolean", None),
    Kind.INT8: ("integer", "int32"),
    Kind.INT16: ("integer", "int32"),
    Kind.INT32: ("integer", "int32"),
    Kind.INT64: ("integer", "int64"),
    Kind.UINT8: ("integer", "int32"),
    Kind.UINT16: ("integer", "int32"),
    Kind.UINT32: ("integer", "int32"),
    Kind.UINT64: ("integer", "int64"),
    Kind.FLOAT32: ("number", "float"),
    Kind.FLOAT64: ("number", "double"),
    Kind.STRING: ("string", None),
}


def sanitize_component_name(name: str) -> str:
    return _UNSAFE_NAME.sub("_", name)


def component_name(t: StructType) -> str:
    """
    <last module segment>_<type name>, e.g. app.models.User -> models_User.
    Returns "" for anonymous structs.
    """
    if not t.name:
        return ""
    if not t.module:
        return sanitize_component_name(t.name)
    pkg = t.module.rsplit(".", 1)[-1]
    return sanitize_component_name(f"{pkg}_{t.name}")


def is_field_required(field: FieldSpec) -> bool:
    if field.omit_empty:
        return field.required
    if field.required:
        return True
    return field.type.kind not in OPTIONAL_KINDS


class SchemaCache:
    """Type identity -> schema node, scoped to one document build."""

    def __init__(self) -> None:
        self._nodes: dict[TypeDescriptor, SchemaNode] = {}
        self._shared: set[int] = set()

    def get(self, t: TypeDescriptor) -> Optional[SchemaNode]:
        return self._nodes.get(t)

    def put(self, t: TypeDescriptor, node: SchemaNode) -> None:
        self._nodes[t] = node
        self._shared.add(id(node))

    def is_shared(self, node: SchemaNode) -> bool:
        return id(node) in self._shared

    def __len__(self) -> int:
        return len(self._nodes)


class SchemaBuilder:
    """
    Converts type descriptors (or plain Python annotations) into schema nodes.

    Named structs are registered once in `components` and referenced by $ref
    everywhere else. One builder serves one document build.
    """

    def __init__(
        self,
        components: Optional[dict[str, SchemaNode]] = None,
        hooks: Optional[HookEngine] = None,
        cache: Optional[SchemaCache] = None,
    ) -> None:
        self.components: dict[str, SchemaNode] = components if components is not None else {}
        self.hooks = hooks
        self.cache = cache if cache is not None else SchemaCache()
        self._owners: dict[str, StructType] = {}
        self._inline_in_progress: set[StructType] = set()

    def schema_for(self, tp: Any) -> SchemaNode:
        t = describe(tp)

        nullable = False
        while isinstance(t, PointerType):
            nullable = True
            t = describe(t.elem)

        base = self._schema_non_null(t)
        return wrap_nullable(base) if nullable else base

    def schema_from_types(self, explicit: Any, inferred: Any) -> Optional[SchemaNode]:
        tp = explicit if explicit is not None else inferred
        if tp is None:
            return None
        return self.schema_for(tp)

    # ----------------------------
    # Dispatch
    # ----------------------------

    def _schema_non_null(self, t: TypeDescriptor) -> SchemaNode:
        cached = self.cache.get(t)
        if cached is not None:
            return cached

        if isinstance(t, PrimitiveType):
            type_, fmt = _PRIMITIVES[t.kind]
            node = SchemaNode.primitive(type_, fmt)
            if t.enum:
                node.enum = list(t.enum)
            return node

        if isinstance(t, SliceType) and t.is_bytes:
            return SchemaNode.primitive("string", "byte")

        if isinstance(t, (SliceType, ArrayType)):
            return SchemaNode(type="array", items=self.schema_for(t.elem))

        if isinstance(t, MapType):
            key = describe(t.key)
            if key.kind is not Kind.STRING:
                raise UnsupportedMapKeyError(str(key))
            node = SchemaNode.empty_object()
            node.additional_properties = self.schema_for(t.value)
            return node

        if isinstance(t, InterfaceType):
            return SchemaNode.empty_object()

        if isinstance(t, StructType):
            if t.well_known is WellKnown.TIMESTAMP:
                return SchemaNode.primitive("string", "date-time")
            if t.well_known is WellKnown.UUID:
                return SchemaNode.primitive("string", "uuid")
            if t.well_known is WellKnown.DECIMAL:
                return SchemaNode(
                    type="string",
                    format="decimal",
                    description=DECIMAL_DESCRIPTION,
                    example=DECIMAL_EXAMPLE,
                )
            return self._struct_schema(t)

        raise UnsupportedTypeError(str(t), t.kind)

    # ----------------------------
    # Structs
    # ----------------------------

    def _struct_schema(self, t: StructType) -> SchemaNode:
        name = self._claim_name(t)
        if not name:
            return self._inline_struct_schema(t)

        ref = SchemaNode.reference(name)
        self.cache.put(t, ref)

        # registered before population so recursive references resolve to `ref`
        schema = SchemaNode(type="object", properties={}, required=[])
        self.components[name] = schema

        self._populate(schema, t)

        if self.hooks is not None:
            self.hooks.run_schema_generate(name, schema)
        logger.debug("schema generated: %s (%s)", name, t)
        return ref

    def _inline_struct_schema(self, t: StructType) -> SchemaNode:
        if t in self._inline_in_progress:
            raise RecursiveInlineStructError(str(t))
        self._inline_in_progress.add(t)
        try:
            schema = SchemaNode(type="object", properties={}, required=[])
            self._populate(schema, t)
        finally:
            self._inline_in_progress.discard(t)
        self.cache.put(t, schema)
        return schema

    def _claim_name(self, t: StructType) -> str:
        name = component_name(t)
        if not name:
            return ""
        candidate, n = name, 1
        while candidate in self._owners and self._owners[candidate] != t:
            n += 1
            candidate = f"{name}_{n}"
        self._owners[candidate] = t
        return candidate

    def _populate(self, schema: SchemaNode, t: StructType) -> None:
        for field in t.fields:
            if field.embedded:
                schema.all_of = (schema.all_of or []) + [self.schema_for(field.type)]
                continue
            if not field.exported or field.skip:
                continue

            child = self._decorate(self.schema_for(field.type), field)
            schema.properties[field.json_name] = child
            if is_field_required(field):
                schema.required.append(field.json_name)

    def _decorate(self, node: SchemaNode, field: FieldSpec) -> SchemaNode:
        if not (field.description or field.example is not None or field.format):
            return node

        if node.is_ref:
            # $ref siblings are ignored by OpenAPI 3.0, so wrap instead of annotating the ref
            node = SchemaNode(all_of=[node])
        elif self.cache.is_shared(node):
            node = node.model_copy()

        if field.description:
            node.description = field.description
        if field.example is not None:
            node.example = field.example
        if field.format and not node.all_of:
            node.format = field.format
        return node


def wrap_nullable(node: SchemaNode) -> SchemaNode:
    """Nullable variant of `node`; never mutates `node` itself."""
    if node.is_ref:
        return SchemaNode(nullable=True, all_of=[node])
    return node.model_copy(update={"nullable": True})
