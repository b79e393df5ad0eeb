from __future__ import annotations

import difflib
import importlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from routedoc.config import GenerateConfig
from routedoc.errors import TargetLoadError
from routedoc.openapi.assembler import DocumentBuilder
from routedoc.openapi.encode import encode_document
from routedoc.openapi.model import Document, Info
from routedoc.store.registry import Registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResult:
    output: Path
    format: str
    content_type: str
    routes: int
    schemas: int
    size_bytes: int


@dataclass(frozen=True)
class CheckResult:
    output: Path
    up_to_date: bool
    missing: bool
    diff: str


def load_registry(target: str) -> Registry:
    """
    Import "package.module:attr" and return the Registry it names.

    attr may also be a zero-argument callable returning a Registry (an app
    factory that registers its routes on call).
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise TargetLoadError(f"target must look like 'package.module:attr', got {target!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise TargetLoadError(f"cannot import {module_name!r}: {exc}") from exc

    obj = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise TargetLoadError(f"{module_name!r} has no attribute {attr!r}") from exc

    if not isinstance(obj, (Registry, type)) and callable(obj):
        obj = obj()
    if not isinstance(obj, Registry):
        raise TargetLoadError(f"{target!r} is not a Registry (got {type(obj).__name__})")
    return obj


def build_document(registry: Registry, config: GenerateConfig) -> Document:
    builder = DocumentBuilder(
        info=Info(title=config.title, version=config.version, description=config.description or None),
        servers=config.servers,
        hooks=registry.hooks,
    )
    return builder.build(registry.snapshot())


def render(registry: Registry, config: GenerateConfig) -> tuple[bytes, str, Document]:
    doc = build_document(registry, config)
    payload, content_type = encode_document(doc, config.resolved_format())
    return payload, content_type, doc


def run_generate(config: GenerateConfig, registry: Optional[Registry] = None) -> GenerateResult:
    registry = registry if registry is not None else load_registry(config.target)
    payload, content_type, doc = render(registry, config)

    out = config.output
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(payload)
    logger.info("wrote %s (%d bytes)", out, len(payload))

    return GenerateResult(
        output=out,
        format=config.resolved_format(),
        content_type=content_type,
        routes=sum(len(item.operations()) for item in doc.paths.values()),
        schemas=len(doc.components.schemas),
        size_bytes=len(payload),
    )


def run_check(config: GenerateConfig, registry: Optional[Registry] = None) -> CheckResult:
    """Regenerate in memory and compare against the stored artifact byte for byte."""
    registry = registry if registry is not None else load_registry(config.target)
    payload, _, _ = render(registry, config)

    out = config.output
    if not out.exists():
        return CheckResult(output=out, up_to_date=False, missing=True, diff="")

    stored = out.read_bytes()
    if stored == payload:
        return CheckResult(output=out, up_to_date=True, missing=False, diff="")

    diff = "".join(
        difflib.unified_diff(
            stored.decode("utf-8", errors="replace").splitlines(keepends=True),
            payload.decode("utf-8").splitlines(keepends=True),
            fromfile=f"{out} (stored)",
            tofile=f"{out} (generated)",
        )
    )
    return CheckResult(output=out, up_to_date=False, missing=False, diff=diff)
