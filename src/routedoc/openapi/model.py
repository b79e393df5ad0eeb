from __future__ import annotations

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, SerializationInfo, SerializerFunctionWrapHandler, model_serializer

OPENAPI_VERSION = "3.0.3"
COMPONENT_REF_PREFIX = "#/components/schemas/"


class _Node(BaseModel):
    """
    Base for every document node.

    Serialization drops None and empty collections (OpenAPI omits them) and
    flattens `extensions` into "x-..." keys on the node itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    # keys that stay even when empty (e.g. "paths" is mandatory)
    _keep_empty: ClassVar[frozenset[str]] = frozenset()

    extensions: dict[str, Any] = Field(default_factory=dict)

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> dict[str, Any]:
        data = handler(self)
        ext = data.pop("extensions", None) or {}
        out = {
            k: v
            for k, v in data.items()
            if v is not None and (k in self._keep_empty or not (isinstance(v, (dict, list)) and not v))
        }
        out.update(ext)
        return out


class SchemaNode(_Node):
    _keep_empty: ClassVar[frozenset[str]] = frozenset({"example"})

    ref: Optional[str] = Field(default=None, alias="$ref")
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    nullable: Optional[bool] = None
    enum: Optional[list[Any]] = None
    example: Any = None

    properties: Optional[dict[str, "SchemaNode"]] = None
    required: Optional[list[str]] = None
    all_of: Optional[list["SchemaNode"]] = Field(default=None, alias="allOf")
    items: Optional["SchemaNode"] = None
    additional_properties: Optional["SchemaNode"] = Field(default=None, alias="additionalProperties")

    @classmethod
    def reference(cls, component: str) -> "SchemaNode":
        return cls(ref=COMPONENT_REF_PREFIX + component)

    @classmethod
    def primitive(cls, type_: str, format_: Optional[str] = None) -> "SchemaNode":
        return cls(type=type_, format=format_)

    @classmethod
    def empty_object(cls) -> "SchemaNode":
        return cls(type="object")

    @property
    def is_ref(self) -> bool:
        return self.ref is not None

    @property
    def component_name(self) -> Optional[str]:
        if self.ref and self.ref.startswith(COMPONENT_REF_PREFIX):
            return self.ref[len(COMPONENT_REF_PREFIX) :]
        return None


class Info(_Node):
    title: str = "API"
    version: str = "1.0.0"
    description: Optional[str] = None


class Server(_Node):
    url: str
    description: Optional[str] = None


class Tag(_Node):
    name: str
    description: Optional[str] = None


class SecurityScheme(_Node):
    type: str
    description: Optional[str] = None
    name: Optional[str] = None
    in_: Optional[str] = Field(default=None, alias="in")
    scheme: Optional[str] = None
    bearer_format: Optional[str] = Field(default=None, alias="bearerFormat")
    open_id_connect_url: Optional[str] = Field(default=None, alias="openIdConnectUrl")
    flows: Optional[dict[str, Any]] = None


class Header(_Node):
    description: Optional[str] = None
    required: Optional[bool] = None
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")


class Parameter(_Node):
    _keep_empty: ClassVar[frozenset[str]] = frozenset({"example"})

    name: str
    in_: str = Field(alias="in")
    description: Optional[str] = None
    required: Optional[bool] = None
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    example: Any = None


class MediaType(_Node):
    _keep_empty: ClassVar[frozenset[str]] = frozenset({"example"})

    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    example: Any = None


class RequestBody(_Node):
    description: Optional[str] = None
    required: Optional[bool] = None
    content: dict[str, MediaType] = Field(default_factory=dict)


class Response(_Node):
    _keep_empty: ClassVar[frozenset[str]] = frozenset({"description"})

    description: str = ""
    headers: dict[str, Header] = Field(default_factory=dict)
    content: dict[str, MediaType] = Field(default_factory=dict)


class Operation(_Node):
    tags: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = Field(default=None, alias="requestBody")
    responses: dict[str, Response] = Field(default_factory=dict)
    deprecated: Optional[bool] = None
    security: Optional[list[dict[str, list[str]]]] = None

    def response(self, status: int) -> Optional[Response]:
        return self.responses.get(str(status))

    def set_response(self, status: int, response: Response) -> None:
        self.responses[str(status)] = response
        # keep numeric order regardless of insertion order
        self.responses = dict(sorted(self.responses.items(), key=lambda kv: _status_key(kv[0])))


class PathItem(_Node):
    get: Optional[Operation] = None
    put: Optional[Operation] = None
    post: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    patch: Optional[Operation] = None
    trace: Optional[Operation] = None

    def operations(self) -> dict[str, Operation]:
        out: dict[str, Operation] = {}
        for method in METHOD_ORDER:
            op = getattr(self, method)
            if op is not None:
                out[method] = op
        return out


METHOD_ORDER = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class Components(_Node):
    schemas: dict[str, SchemaNode] = Field(default_factory=dict)
    security_schemes: dict[str, SecurityScheme] = Field(default_factory=dict, alias="securitySchemes")


class Document(_Node):
    _keep_empty: ClassVar[frozenset[str]] = frozenset({"paths"})

    openapi: str = OPENAPI_VERSION
    info: Info = Field(default_factory=Info)
    servers: list[Server] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)
    security: list[dict[str, list[str]]] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _status_key(code: str) -> tuple[int, str]:
    return (int(code), code) if code.isdigit() else (10_000, code)


SchemaNode.model_rebuild()
