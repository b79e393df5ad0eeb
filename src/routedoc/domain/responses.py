from __future__ import annotations

from http import HTTPStatus
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from routedoc.domain.models import (
    JSON_CONTENT_TYPE,
    EndpointDescriptor,
    HeaderDescriptor,
    ResponseDescriptor,
)

MULTIPART_FORM_DATA = "multipart/form-data"
FORM_URLENCODED = "application/x-www-form-urlencoded"


class ErrorResponse(BaseModel):
    """Shared error payload documented for 4xx/5xx responses."""

    code: str = Field(description="Error code identifier")
    message: str = Field(description="Human-readable error message")
    details: Any = Field(default=None, description="Additional error details")


ERROR_DESCRIPTIONS: dict[int, str] = {
    400: "Bad Request - Invalid input",
    401: "Unauthorized - Authentication required",
    403: "Forbidden - Insufficient permissions",
    404: "Not Found - Resource does not exist",
    409: "Conflict - Resource already exists",
    422: "Unprocessable Entity - Validation failed",
    500: "Internal Server Error",
    503: "Service Unavailable - Temporary outage",
}


def register_response(
    descriptor: EndpointDescriptor,
    status: int,
    model: Any = None,
    *,
    explicit_model: Any = None,
    description: str = "",
    content_type: str = JSON_CONTENT_TYPE,
    example: Any = None,
    headers: Iterable[HeaderDescriptor] = (),
) -> ResponseDescriptor:
    """Set the response for `status`, replacing any existing one."""
    resp = ResponseDescriptor(
        model_type=model,
        explicit_model_type=explicit_model,
        description=description,
        content_type=content_type,
        example=example,
        headers=list(headers),
    )
    descriptor.responses[status] = resp
    return resp


def ensure_response(
    descriptor: EndpointDescriptor,
    status: int,
    model: Any = None,
    **options: Any,
) -> ResponseDescriptor:
    """Add the response for `status` only if missing; an existing one only gains a missing model."""
    existing = descriptor.responses.get(status)
    if existing is not None:
        if model is not None and existing.model_type is None:
            existing.model_type = model
        if not existing.content_type:
            existing.content_type = JSON_CONTENT_TYPE
        return existing
    return register_response(descriptor, status, model, **options)


def with_success_status(descriptor: EndpointDescriptor, status: int) -> EndpointDescriptor:
    if status >= 100:
        descriptor.success_status = status
        ensure_response(descriptor, status)
    return descriptor


def with_error_response(
    descriptor: EndpointDescriptor,
    status: int,
    description: str = "",
    model: Optional[Any] = None,
) -> EndpointDescriptor:
    if not description:
        description = ERROR_DESCRIPTIONS.get(status) or _phrase(status)
    ensure_response(descriptor, status, model if model is not None else ErrorResponse, description=description)
    return descriptor


def with_standard_errors(descriptor: EndpointDescriptor) -> EndpointDescriptor:
    """400, 422 and 500 with the shared ErrorResponse schema."""
    for status in (400, 422, 500):
        with_error_response(descriptor, status)
    return descriptor


def with_multipart_form_data(descriptor: EndpointDescriptor) -> EndpointDescriptor:
    descriptor.request_content_type = MULTIPART_FORM_DATA
    return descriptor


def with_form_urlencoded(descriptor: EndpointDescriptor) -> EndpointDescriptor:
    descriptor.request_content_type = FORM_URLENCODED
    return descriptor


def _phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""
