from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from routedoc.openapi.encode import format_for_path
from routedoc.openapi.model import Server


class GenerateConfig(BaseModel):
    """
    Settings for a generation / drift-check run.

    Read from `[tool.routedoc]` in pyproject.toml (or a top-level `[routedoc]`
    table in a dedicated file); CLI flags override individual values.
    """

    target: str = ""  # "package.module:registry"
    output: Path = Path("openapi.yaml")
    format: str = ""  # empty: derived from the output extension
    title: str = "API"
    version: str = "1.0.0"
    description: str = ""
    servers: list[Server] = Field(default_factory=list)

    def resolved_format(self) -> str:
        return self.format.lower() if self.format else format_for_path(str(self.output))

    def merged(self, **overrides: Any) -> "GenerateConfig":
        return self.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def load_config(path: Optional[Path]) -> GenerateConfig:
    if path is None:
        return GenerateConfig()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    if "tool" in data:
        section = data["tool"].get("routedoc", {})
    else:
        section = data.get("routedoc", data)

    cfg = GenerateConfig.model_validate(section)
    # relative output paths are relative to the config file
    if not cfg.output.is_absolute():
        cfg.output = Path(path).resolve().parent / cfg.output
    return cfg
