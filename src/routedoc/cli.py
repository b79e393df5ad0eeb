from __future__ import annotations

import logging
import sys
import tomllib
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from routedoc.config import GenerateConfig, load_config
from routedoc.errors import RoutedocError
from routedoc.orchestrator.pipeline import load_registry, run_check, run_generate

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_config(
    target: Optional[str],
    config: Optional[Path],
    out: Optional[str],
    fmt: Optional[str],
    title: Optional[str],
    version: Optional[str],
) -> GenerateConfig:
    try:
        cfg = load_config(config.expanduser() if config else None)
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        raise typer.BadParameter(f"invalid config {config}: {exc}", param_hint="--config") from exc
    cfg = cfg.merged(
        target=target,
        output=Path(out).expanduser() if out else None,
        format=fmt,
        title=title,
        version=version,
    )
    if not cfg.target:
        raise typer.BadParameter("no target given (argument or [tool.routedoc] target)")
    return cfg


def _prepare_import_path() -> None:
    # targets are usually modules of the project being documented
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)


@app.command()
def generate(
    target: Optional[str] = typer.Argument(None, help="Registry to document, as 'package.module:attr'"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Output file (default openapi.yaml)"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="yaml|json (default: from --out extension)"),
    title: Optional[str] = typer.Option(None, help="info.title"),
    version: Optional[str] = typer.Option(None, "--version", help="info.version"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="TOML config ([tool.routedoc])"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    _setup_logging(verbose)
    _prepare_import_path()
    cfg = _resolve_config(target, config, out, fmt, title, version)

    try:
        result = run_generate(cfg)
    except RoutedocError as exc:
        console.print(f"[bold red]error[/bold red]: {exc}")
        raise typer.Exit(code=2)

    console.print(f"[bold green]routedoc[/bold green] generate: {cfg.target}")
    console.print(f"Routes: [bold]{result.routes}[/bold]  Schemas: [bold]{result.schemas}[/bold]")
    console.print(f"[bold green]Wrote[/bold green] {result.format} document ({result.size_bytes} bytes) to: {result.output}")


@app.command()
def check(
    target: Optional[str] = typer.Argument(None, help="Registry to document, as 'package.module:attr'"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Committed OpenAPI file to compare against"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="yaml|json (default: from --out extension)"),
    title: Optional[str] = typer.Option(None, help="info.title"),
    version: Optional[str] = typer.Option(None, "--version", help="info.version"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="TOML config ([tool.routedoc])"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Exit 1 when the committed OpenAPI file differs from what the code would generate."""
    _setup_logging(verbose)
    _prepare_import_path()
    cfg = _resolve_config(target, config, out, fmt, title, version)

    try:
        result = run_check(cfg)
    except RoutedocError as exc:
        console.print(f"[bold red]error[/bold red]: {exc}")
        raise typer.Exit(code=2)

    if result.up_to_date:
        console.print(f"[bold green]up to date[/bold green]: {result.output}")
        return

    if result.missing:
        console.print(f"[bold red]missing[/bold red]: {result.output} (run routedoc generate)")
    else:
        console.print(f"[bold red]drift[/bold red]: {result.output} is out of date")
        console.print(result.diff, markup=False, highlight=False)
    raise typer.Exit(code=1)


@app.command()
def routes(
    target: str = typer.Argument(..., help="Registry to list, as 'package.module:attr'"),
) -> None:
    _prepare_import_path()
    try:
        registry = load_registry(target)
    except RoutedocError as exc:
        console.print(f"[bold red]error[/bold red]: {exc}")
        raise typer.Exit(code=2)

    rows = registry.snapshot()
    console.print(f"[bold]Routes:[/bold] {len(rows)}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("OPERATION")
    table.add_column("STATUSES", no_wrap=True)
    table.add_column("TAGS")

    for r in rows:
        table.add_row(
            r.method,
            r.path,
            r.operation_id,
            ",".join(str(s) for s in sorted(r.responses)),
            ",".join(r.tags),
        )

    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
