from __future__ import annotations

from typing import Iterable, Optional

from routedoc.domain.models import EndpointDescriptor
from routedoc.hooks.engine import Hook
from routedoc.openapi.model import Document, SchemaNode, SecurityScheme, Server


class AutoTagHook(Hook):
    """Tag routes by path prefix: {"/api/users": "users"}."""

    name = "auto-tag"

    def __init__(self, rules: dict[str, str], name: Optional[str] = None) -> None:
        super().__init__(name)
        self.rules = dict(rules)

    def on_route_register(self, descriptor: EndpointDescriptor) -> None:
        # sorted so tag order does not depend on dict construction order
        for prefix, tag in sorted(self.rules.items()):
            if descriptor.path.startswith(prefix) and tag not in descriptor.tags:
                descriptor.tags.append(tag)


class ServersHook(Hook):
    name = "custom-servers"

    def __init__(self, servers: Iterable[Server], name: Optional[str] = None) -> None:
        super().__init__(name)
        self.servers = list(servers)

    def on_spec_build(self, document: Document) -> None:
        document.servers.extend(s.model_copy(deep=True) for s in self.servers)


class SecuritySchemesHook(Hook):
    name = "security-schemes"

    def __init__(
        self,
        schemes: dict[str, SecurityScheme],
        global_security: Optional[list[dict[str, list[str]]]] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name)
        self.schemes = dict(schemes)
        self.global_security = list(global_security or [])

    def on_spec_build(self, document: Document) -> None:
        for key in sorted(self.schemes):
            document.components.security_schemes[key] = self.schemes[key].model_copy(deep=True)
        document.components.security_schemes = dict(sorted(document.components.security_schemes.items()))
        document.security.extend({k: list(v) for k, v in req.items()} for req in self.global_security)


class ValidationMetadataHook(Hook):
    """Adds x-validated / x-schema-version to every named schema."""

    name = "validation-metadata"

    def __init__(self, validated: bool = True, schema_version: str = "", name: Optional[str] = None) -> None:
        super().__init__(name)
        self.validated = validated
        self.schema_version = schema_version

    def on_schema_generate(self, component: str, schema: SchemaNode) -> None:
        if self.validated:
            schema.extensions["x-validated"] = True
        if self.schema_version:
            schema.extensions["x-schema-version"] = self.schema_version
