from __future__ import annotations

import json

import yaml

from routedoc.errors import UnsupportedFormatError
from routedoc.openapi.model import Document

FORMATS = ("yaml", "json")


def encode_document(doc: Document, fmt: str = "yaml") -> tuple[bytes, str]:
    """Serialize the document; returns (payload, content type)."""
    data = doc.to_dict()
    kind = (fmt or "").strip().lower()

    if kind in ("yaml", "yml", ""):
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
        return text.encode("utf-8"), "application/yaml"
    if kind == "json":
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        return text.encode("utf-8"), "application/json"
    raise UnsupportedFormatError(fmt)


def format_for_path(path: str, default: str = "yaml") -> str:
    lower = path.lower()
    if lower.endswith(".json"):
        return "json"
    if lower.endswith((".yaml", ".yml")):
        return "yaml"
    return default
