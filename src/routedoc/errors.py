from __future__ import annotations

from typing import Any


class RoutedocError(Exception):
    """Base class for every error raised by routedoc."""


class RegistrationError(RoutedocError):
    """A route-registration hook refused a descriptor."""

    def __init__(self, hook_name: str, method: str, path: str) -> None:
        self.hook_name = hook_name
        self.method = method
        self.path = path
        super().__init__(f"hook {hook_name!r} rejected route {method} {path}")


class BuildError(RoutedocError):
    """Structural problem found while building the document."""


class UnsupportedTypeError(BuildError):
    def __init__(self, type_name: str, kind: Any) -> None:
        self.type_name = type_name
        self.kind = kind
        super().__init__(f"unsupported type {type_name} (kind {kind})")


class UnsupportedMapKeyError(BuildError):
    def __init__(self, key_type: str) -> None:
        self.key_type = key_type
        super().__init__(f"unsupported map key type {key_type}")


class UnsupportedMethodError(BuildError):
    def __init__(self, method: str, path: str) -> None:
        self.method = method
        self.path = path
        super().__init__(f"unsupported method {method} for {path}")


class RecursiveInlineStructError(BuildError):
    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(
            f"anonymous struct {type_name} refers to itself; give it a name to allow recursion"
        )


class TypeDescriptionError(BuildError):
    """A Python annotation has no structural equivalent."""


class HookError(RoutedocError):
    """A schema-generation or spec-build hook failed."""

    def __init__(self, hook_name: str, point: str) -> None:
        self.hook_name = hook_name
        self.point = point
        super().__init__(f"hook {hook_name!r} failed during {point}")


class UnsupportedFormatError(RoutedocError):
    def __init__(self, fmt: str) -> None:
        self.format = fmt
        super().__init__(f"unsupported format {fmt!r}")


class TargetLoadError(RoutedocError):
    """The registry target given to the pipeline could not be imported."""
