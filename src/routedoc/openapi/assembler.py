from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Iterable, Optional

from routedoc.domain.models import (
    JSON_CONTENT_TYPE,
    EndpointDescriptor,
    HeaderDescriptor,
    ResponseDescriptor,
    default_success_status,
    descriptor_sort_key,
)
from routedoc.errors import UnsupportedMethodError
from routedoc.hooks.engine import HookEngine
from routedoc.openapi.model import (
    METHOD_ORDER,
    Components,
    Document,
    Header,
    Info,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    SchemaNode,
    SecurityScheme,
    Server,
    Tag,
)
from routedoc.openapi.paths import normalize_path
from routedoc.schema.builder import SchemaBuilder

logger = logging.getLogger(__name__)

LOCATION_HEADER = "Location"
LOCATION_DESCRIPTION = "URI of the newly created resource"

_DEFAULT_DESCRIPTIONS: dict[int, str] = {
    200: "OK",
    201: "Created",
    202: "Accepted",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def default_response_description(status: int) -> str:
    return _DEFAULT_DESCRIPTIONS.get(status, "")


class DocumentBuilder:
    """
    Turns a registry snapshot into an OpenAPI document.

    Document-level settings (info, servers, tags, security schemes, global
    security) live on the builder; everything per-build (schema cache,
    components) is created inside build() and dropped afterwards.
    """

    def __init__(
        self,
        info: Optional[Info] = None,
        servers: Optional[list[Server]] = None,
        tags: Optional[list[Tag]] = None,
        security_schemes: Optional[dict[str, SecurityScheme]] = None,
        global_security: Optional[list[dict[str, list[str]]]] = None,
        hooks: Optional[HookEngine] = None,
    ) -> None:
        self.info = info if info is not None else Info()
        self.servers = list(servers or [])
        self.tags = list(tags or [])
        self.security_schemes = dict(security_schemes or {})
        self.global_security = list(global_security or [])
        self.hooks = hooks

    def build(self, descriptors: Iterable[EndpointDescriptor]) -> Document:
        doc = Document(
            info=self.info.model_copy(deep=True),
            servers=[s.model_copy(deep=True) for s in self.servers],
            tags=[t.model_copy(deep=True) for t in self.tags],
            components=Components(
                security_schemes={k: v.model_copy(deep=True) for k, v in self.security_schemes.items()}
            ),
            security=[{k: list(v) for k, v in req.items()} for req in self.global_security],
        )
        schemas = SchemaBuilder(components=doc.components.schemas, hooks=self.hooks)

        count = 0
        for descriptor in sorted(descriptors, key=descriptor_sort_key):
            self._add_route(doc, schemas, descriptor)
            count += 1

        doc.paths = dict(sorted(doc.paths.items()))
        doc.components.schemas = dict(sorted(doc.components.schemas.items()))

        if self.hooks is not None:
            self.hooks.run_spec_build(doc)

        logger.info("document built: %d routes, %d schemas", count, len(doc.components.schemas))
        return doc

    # ----------------------------
    # Operations
    # ----------------------------

    def _add_route(self, doc: Document, schemas: SchemaBuilder, ref: EndpointDescriptor) -> None:
        method = ref.method.lower()
        if method not in METHOD_ORDER:
            raise UnsupportedMethodError(ref.method, ref.path)

        path = normalize_path(ref.path)
        item = doc.paths.setdefault(path, PathItem())

        op = Operation(
            operation_id=ref.operation_id or None,
            summary=ref.summary or None,
            description=ref.description or None,
            tags=list(ref.tags),
            deprecated=ref.deprecated or None,
        )

        params = sorted(ref.parameters, key=lambda p: (p.location, p.name))
        for p in params:
            op.parameters.append(
                Parameter(
                    name=p.name,
                    in_=p.location,
                    description=p.description or None,
                    required=p.required or None,
                    schema_=SchemaNode(type=p.schema_type or "string"),
                    example=p.example,
                )
            )

        if ref.security:
            op.security = [{sec.name: list(sec.scopes)} for sec in ref.security]

        op.request_body = self._request_body(schemas, ref)

        for status in sorted(ref.responses):
            op.set_response(status, self._response(schemas, status, ref.responses[status]))

        add_dx_defaults(ref, op)

        if getattr(item, method) is not None:
            logger.warning("duplicate operation %s %s; the last one in sorted order wins", ref.method, path)
        setattr(item, method, op)

    def _request_body(self, schemas: SchemaBuilder, ref: EndpointDescriptor) -> Optional[RequestBody]:
        schema = schemas.schema_from_types(ref.explicit_request_type, ref.request_type)
        if schema is None:
            return None

        content_type = ref.request_content_type or JSON_CONTENT_TYPE
        return RequestBody(
            required=ref.body_required or ref.has_request_model,
            content={content_type: MediaType(schema_=schema, example=ref.request_example)},
        )

    def _response(self, schemas: SchemaBuilder, status: int, ref: ResponseDescriptor) -> Response:
        schema = schemas.schema_from_types(ref.explicit_model_type, ref.model_type)

        resp = Response(description=ref.description or default_response_description(status))
        if schema is not None:
            content_type = ref.content_type or JSON_CONTENT_TYPE
            resp.content[content_type] = MediaType(schema_=schema, example=ref.example)

        for hdr in ref.headers:
            resp.headers[hdr.name] = header_from(hdr)
        return resp


def header_from(h: HeaderDescriptor) -> Header:
    return Header(
        description=h.description or None,
        required=h.required or None,
        schema_=SchemaNode(type=h.schema_type or "string"),
    )


def add_dx_defaults(ref: EndpointDescriptor, op: Operation) -> None:
    if default_success_status(ref.method) == int(HTTPStatus.CREATED):
        created = op.response(int(HTTPStatus.CREATED))
        if created is not None and not any(k.lower() == LOCATION_HEADER.lower() for k in created.headers):
            created.headers[LOCATION_HEADER] = Header(
                description=LOCATION_DESCRIPTION,
                required=True,
                schema_=SchemaNode(type="string", format="uri"),
            )

    if ref.security:
        ensure_response(op, int(HTTPStatus.UNAUTHORIZED))
        ensure_response(op, int(HTTPStatus.FORBIDDEN))


def ensure_response(op: Operation, status: int) -> None:
    if op.response(status) is not None:
        return
    op.set_response(status, Response(description=default_response_description(status)))
