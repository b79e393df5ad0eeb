from __future__ import annotations

from http import HTTPStatus
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from routedoc.openapi.paths import normalize_path, path_segments

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE"]
ParamLocation = Literal["query", "path", "header", "cookie"]

JSON_CONTENT_TYPE = "application/json"


class _Descriptor(BaseModel):
    # type fields hold Python classes or routedoc.schema.types descriptors
    model_config = ConfigDict(arbitrary_types_allowed=True, protected_namespaces=())


class SecurityRequirement(_Descriptor):
    name: str
    scopes: list[str] = Field(default_factory=list)


class HeaderDescriptor(_Descriptor):
    name: str
    description: str = ""
    schema_type: str = ""  # primitive hint: string/integer/number/boolean
    required: bool = False


class ParameterDescriptor(_Descriptor):
    name: str
    location: ParamLocation = "query"
    description: str = ""
    required: bool = False
    schema_type: str = ""
    example: Any = None


class ResponseDescriptor(_Descriptor):
    model_type: Any = None
    explicit_model_type: Any = None
    description: str = ""
    content_type: str = JSON_CONTENT_TYPE
    example: Any = None
    headers: list[HeaderDescriptor] = Field(default_factory=list)


class EndpointDescriptor(_Descriptor):
    method: str
    path: str
    operation_id: str = ""
    summary: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False

    request_type: Any = None
    request_content_type: str = ""
    explicit_request_type: Any = None
    request_example: Any = None

    responses: dict[int, ResponseDescriptor] = Field(default_factory=dict)
    security: list[SecurityRequirement] = Field(default_factory=list)
    parameters: list[ParameterDescriptor] = Field(default_factory=list)

    success_status: int = 0
    body_required: bool = False

    @field_validator("method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def has_request_model(self) -> bool:
        return self.request_type is not None or self.explicit_request_type is not None


def default_success_status(method: str) -> int:
    m = method.upper()
    if m == "POST":
        return int(HTTPStatus.CREATED)
    if m == "DELETE":
        return int(HTTPStatus.NO_CONTENT)
    return int(HTTPStatus.OK)


def default_operation_id(method: str, path: str) -> str:
    """
    Stable operation id from method + path.

    GET /users/:id -> get_users_id
    GET /          -> get_root
    """
    segments = [seg.replace("{", "").replace("}", "") for seg in path_segments(normalize_path(path))]
    base = "_".join(segments) if segments else "root"
    return f"{method.lower()}_{base}"


def apply_defaults(descriptor: EndpointDescriptor) -> EndpointDescriptor:
    if not descriptor.success_status:
        descriptor.success_status = default_success_status(descriptor.method)
    if not descriptor.operation_id:
        descriptor.operation_id = default_operation_id(descriptor.method, descriptor.path)
    return descriptor


def descriptor_sort_key(descriptor: EndpointDescriptor) -> tuple[str, str, str]:
    """
    Total order over descriptors: path, method, then the full content.

    Two registrations of the same method and path therefore sort the same way
    whatever order they were registered in.
    """
    return (descriptor.path, descriptor.method, repr(descriptor.model_dump()))
