from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from routedoc.domain.models import EndpointDescriptor, apply_defaults, descriptor_sort_key
from routedoc.hooks.engine import HookEngine

logger = logging.getLogger(__name__)


class _ReadWriteLock:
    """Many concurrent readers or one writer; writers are not starved by new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Registry:
    """
    In-memory store of endpoint descriptors.

    - register(): defaults, route hooks, then append (nothing is stored if a hook rejects)
    - snapshot(): sorted copy (path, method, content), independent of later registrations
    - reset(): drop everything (repeated generation runs in one process)
    """

    def __init__(self, hooks: Optional[HookEngine] = None) -> None:
        self.hooks = hooks if hooks is not None else HookEngine()
        self._lock = _ReadWriteLock()
        self._routes: list[EndpointDescriptor] = []

    def register(self, descriptor: EndpointDescriptor) -> EndpointDescriptor:
        apply_defaults(descriptor)
        self.hooks.run_route_register(descriptor)

        with self._lock.write():
            self._routes.append(descriptor)
        logger.info("route registered: %s %s", descriptor.method, descriptor.path)
        return descriptor

    def add_route(self, method: str, path: str, **fields: Any) -> EndpointDescriptor:
        return self.register(EndpointDescriptor(method=method, path=path, **fields))

    def snapshot(self) -> list[EndpointDescriptor]:
        with self._lock.read():
            out = list(self._routes)
        out.sort(key=descriptor_sort_key)
        return out

    def reset(self) -> None:
        with self._lock.write():
            self._routes = []

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._routes)
