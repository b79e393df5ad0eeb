from pathlib import Path
import textwrap

import pytest

from routedoc.config import GenerateConfig, load_config
from routedoc.errors import TargetLoadError
from routedoc.orchestrator.pipeline import load_registry, run_check, run_generate
from routedoc.store.registry import Registry

import sample_api


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


def test_load_registry_targets():
    assert load_registry("sample_api:registry") is sample_api.registry

    fresh = load_registry("sample_api:build_registry")
    assert isinstance(fresh, Registry)
    assert len(fresh) == len(sample_api.registry)


def test_load_registry_errors():
    for bad in ("sample_api", "sample_api:", ":registry", "no_such_module_xyz:registry", "sample_api:missing", "sample_api:User"):
        with pytest.raises(TargetLoadError):
            load_registry(bad)


def test_generate_then_check(tmp_path: Path):
    out = tmp_path / "spec" / "openapi.yaml"
    cfg = GenerateConfig(target="sample_api:registry", output=out, title="Users")

    result = run_generate(cfg)
    assert result.output == out
    assert result.format == "yaml"
    assert result.routes == 3
    assert result.schemas == 3
    assert out.read_bytes().startswith(b"openapi: ")
    assert result.size_bytes == len(out.read_bytes())

    check = run_check(cfg)
    assert check.up_to_date
    assert check.diff == ""


def test_check_reports_drift(tmp_path: Path):
    out = tmp_path / "openapi.json"
    cfg = GenerateConfig(target="sample_api:registry", output=out)

    missing = run_check(cfg)
    assert not missing.up_to_date
    assert missing.missing

    run_generate(cfg)
    out.write_text(out.read_text(encoding="utf-8").replace('"title": "API"', '"title": "Old"'), encoding="utf-8")

    drift = run_check(cfg)
    assert not drift.up_to_date
    assert not drift.missing
    assert '-    "title": "Old",' in drift.diff
    assert '+    "title": "API",' in drift.diff


def test_registry_can_be_passed_directly(tmp_path: Path):
    reg = Registry()
    reg.add_route("GET", "/ping")
    out = tmp_path / "ping.json"

    result = run_generate(GenerateConfig(output=out), registry=reg)
    assert result.format == "json"
    assert result.routes == 1
    assert result.schemas == 0
    assert run_check(GenerateConfig(output=out), registry=reg).up_to_date


def test_load_config_from_pyproject(tmp_path: Path):
    pyproject = tmp_path / "pyproject.toml"
    write(
        pyproject,
        """
        [project]
        name = "demo"

        [tool.routedoc]
        target = "demo.api:registry"
        output = "docs/openapi.json"
        title = "Demo"
        servers = [{ url = "https://demo.example.com" }]
        """,
    )

    cfg = load_config(pyproject)
    assert cfg.target == "demo.api:registry"
    assert cfg.output == tmp_path.resolve() / "docs" / "openapi.json"
    assert cfg.resolved_format() == "json"
    assert cfg.title == "Demo"
    assert cfg.version == "1.0.0"
    assert cfg.servers[0].url == "https://demo.example.com"

    merged = cfg.merged(title=None, version="2.0.0")
    assert merged.title == "Demo"
    assert merged.version == "2.0.0"


def test_load_config_dedicated_file(tmp_path: Path):
    path = tmp_path / "routedoc.toml"
    write(
        path,
        """
        [routedoc]
        target = "app:registry"
        format = "JSON"
        """,
    )

    cfg = load_config(path)
    assert cfg.target == "app:registry"
    assert cfg.resolved_format() == "json"
    assert load_config(None) == GenerateConfig()
