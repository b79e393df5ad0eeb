from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

from routedoc.errors import HookError, RegistrationError, RoutedocError

if TYPE_CHECKING:
    from routedoc.domain.models import EndpointDescriptor
    from routedoc.openapi.model import Document, SchemaNode

logger = logging.getLogger(__name__)

ROUTE_REGISTER = "on_route_register"
SCHEMA_GENERATE = "on_schema_generate"
SPEC_BUILD = "on_spec_build"


class Hook:
    """
    Base class for extensions. Override only the callbacks you need.

    - on_route_register: may mutate the descriptor; raising rejects the route.
    - on_schema_generate: receives a named component and may enrich it in place.
    - on_spec_build: receives the assembled document before it is returned.
    """

    name: str = ""

    def __init__(self, name: Optional[str] = None) -> None:
        if name is not None:
            self.name = name

    def on_route_register(self, descriptor: EndpointDescriptor) -> None:
        return None

    def on_schema_generate(self, component: str, schema: SchemaNode) -> None:
        return None

    def on_spec_build(self, document: Document) -> None:
        return None


class FunctionHook(Hook):
    """Hook assembled from plain callables."""

    def __init__(
        self,
        name: str,
        on_route_register: Optional[Callable[[EndpointDescriptor], None]] = None,
        on_schema_generate: Optional[Callable[[str, SchemaNode], None]] = None,
        on_spec_build: Optional[Callable[[Document], None]] = None,
    ) -> None:
        super().__init__(name)
        self._route = on_route_register
        self._schema = on_schema_generate
        self._spec = on_spec_build

    def on_route_register(self, descriptor: EndpointDescriptor) -> None:
        if self._route is not None:
            self._route(descriptor)

    def on_schema_generate(self, component: str, schema: SchemaNode) -> None:
        if self._schema is not None:
            self._schema(component, schema)

    def on_spec_build(self, document: Document) -> None:
        if self._spec is not None:
            self._spec(document)


class HookEngine:
    """Name-keyed set of hooks, always executed in ascending name order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hooks: dict[str, Hook] = {}

    def register(self, hook: Hook) -> None:
        if not hook.name:
            raise ValueError("hook must have a non-empty name")
        with self._lock:
            # same name replaces the previous hook
            self._hooks[hook.name] = hook
        logger.info("hook registered: %s", hook.name)

    def unregister(self, name: str) -> None:
        with self._lock:
            self._hooks.pop(name, None)

    def get(self, name: str) -> Optional[Hook]:
        with self._lock:
            return self._hooks.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._hooks)

    def reset(self) -> None:
        with self._lock:
            self._hooks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hooks)

    def _ordered(self) -> list[Hook]:
        with self._lock:
            return [self._hooks[name] for name in sorted(self._hooks)]

    # ----------------------------
    # Extension points
    # ----------------------------

    def run_route_register(self, descriptor: EndpointDescriptor) -> None:
        for hook in self._ordered():
            logger.debug("hook executed: %s %s %s %s", hook.name, ROUTE_REGISTER, descriptor.method, descriptor.path)
            try:
                hook.on_route_register(descriptor)
            except RoutedocError:
                raise
            except Exception as exc:
                raise RegistrationError(hook.name, descriptor.method, descriptor.path) from exc

    def run_schema_generate(self, component: str, schema: SchemaNode) -> None:
        for hook in self._ordered():
            logger.debug("hook executed: %s %s %s", hook.name, SCHEMA_GENERATE, component)
            self._call(hook, SCHEMA_GENERATE, hook.on_schema_generate, component, schema)

    def run_spec_build(self, document: Document) -> None:
        for hook in self._ordered():
            logger.debug("hook executed: %s %s", hook.name, SPEC_BUILD)
            self._call(hook, SPEC_BUILD, hook.on_spec_build, document)

    @staticmethod
    def _call(hook: Hook, point: str, fn: Callable[..., None], *args: object) -> None:
        try:
            fn(*args)
        except RoutedocError:
            raise
        except Exception as exc:
            raise HookError(hook.name, point) from exc
