from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import typer

from relgen.compiler.pipeline import compile_declarations, load_declaration_file
from relgen.config import get_settings
from relgen.domain.errors import ConfigurationError, RelgenError
from relgen.domain.models import AccessorRole, AccessorSpec
from relgen.infrastructure.db_factory import async_store, sync_store
from relgen.reporter import print_report
from relgen.runtime.accessors import bind_accessor
from relgen.utils.logging import configure_logging

app = typer.Typer(help="relgen: compile relationship declarations into accessors.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _load(path: Path) -> Any:
    try:
        return load_declaration_file(path)
    except (OSError, json.JSONDecodeError, ConfigurationError) as exc:
        typer.echo(f"Cannot read {path}: {exc}", err=True)
        raise typer.Exit(code=2) from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"env={settings.app_env} log_level={settings.log_level} json_logs={settings.log_json} | "
        f"pairing_anomaly={settings.pairing_anomaly_policy} | "
        f"db={settings.db_backend}:{settings.db_dsn} attempts={settings.db_connect_attempts}"
    )


@app.command()
def check(path: Path = typer.Argument(..., help="JSON file mapping entity -> declarations.")) -> None:
    """
    Validate declarations; exit 1 if any is rejected.
    """
    _setup_logging()
    report = compile_declarations(_load(path))
    print_report(report, accessors=False)
    if not report.ok:
        raise typer.Exit(code=1)


@app.command("compile")
def compile_command(
    path: Path = typer.Argument(..., help="JSON file mapping entity -> declarations."),
    as_json: bool = typer.Option(False, "--json", help="Emit accessor specs as JSON."),
) -> None:
    """
    Compile declarations and show the accessor specs (table or JSON).
    """
    _setup_logging()
    report = compile_declarations(_load(path))
    if as_json:
        payload = {
            entity: [accessor.model_dump(mode="json") for accessor in report.accessors_for(entity)]
            for entity in report.entities()
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        print_report(report)
    if not report.ok:
        raise typer.Exit(code=1)


def _find_accessor(path: Path, entity: str, name: str) -> AccessorSpec:
    report = compile_declarations(_load(path))
    for accessor in report.accessors_for(entity):
        if accessor.name == name:
            return accessor
    known = ", ".join(a.name for a in report.accessors_for(entity)) or "none"
    typer.echo(f"No accessor '{name}' on '{entity}'. Known: {known}", err=True)
    raise typer.Exit(code=2)


def _run(spec: AccessorSpec, parents: List[dict], backend: str, dsn: str) -> Any:
    accessor = bind_accessor(spec)
    eager = spec.role is AccessorRole.EAGER_LOADER

    if spec.is_async:

        async def _go() -> Any:
            async with async_store(backend, dsn) as store:
                if eager:
                    return await accessor(parents, store)
                return [await accessor(parent, store) for parent in parents]

        return asyncio.run(_go())

    with sync_store(backend, dsn) as store:
        if eager:
            return accessor(parents, store)
        return [accessor(parent, store) for parent in parents]


@app.command()
def fetch(
    path: Path = typer.Argument(..., help="JSON file mapping entity -> declarations."),
    entity: str = typer.Argument(..., help="Entity that owns the accessor."),
    accessor: str = typer.Argument(..., help="Accessor name, e.g. get_posts or load_with_posts."),
    parent: List[str] = typer.Option(
        ..., "--parent", "-p", help='Parent record as JSON, e.g. \'{"id": 1}\'. Repeatable.'
    ),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Connection string (default from settings)."),
) -> None:
    """
    Run one compiled accessor against a live database and print the result.
    """
    _setup_logging()
    settings = get_settings()
    spec = _find_accessor(path, entity, accessor)
    try:
        parents = [json.loads(item) for item in parent]
    except json.JSONDecodeError as exc:
        typer.echo(f"--parent must be JSON: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    try:
        result = _run(spec, parents, spec.backend.value, dsn or settings.db_dsn)
    except RelgenError as exc:
        typer.echo(f"{type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps(result, indent=2, default=str))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
