"""
CLI: ``portfolio-core manifest`` - validate and inspect manifest files.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from portfolio_core.core.errors import PortfolioError
from portfolio_core.core.result import Err, Ok
from portfolio_core.manifest import loader, schema_definition
from portfolio_core.manifest.schema import ValidatedManifest

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(no_args_is_help=True)


def _load_or_exit(path: Path) -> ValidatedManifest:
    match loader.load(path):
        case Ok(manifest):
            return manifest
        case Err(error):
            details = error.to_dict() if isinstance(error, PortfolioError) else {"message": str(error)}
            err_console.print(f"[bold red]Invalid manifest[/bold red]: {details['message']}")
            err_console.print_json(json.dumps(details, default=str))
            raise typer.Exit(code=1)


@app.command("validate")
def validate_manifest(
    path: Path = typer.Argument(..., help="Manifest file to validate"),
) -> None:
    """Load and validate a manifest, expanding ${VAR} placeholders."""
    manifest = _load_or_exit(path)
    enabled = len(manifest.enabled_adapters)
    console.print(
        f"[green]✓[/green] {path} is valid "
        f"(version {manifest.version}, {manifest.environment.value}, "
        f"{enabled}/{len(manifest.adapters)} adapters enabled)"
    )


@app.command("show")
def show_manifest(
    path: Path = typer.Argument(..., help="Manifest file to show"),
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
) -> None:
    """Show the validated manifest with defaults filled in."""
    if format not in ("table", "json"):
        err_console.print(f"[red]Unknown format:[/red] {format}")
        raise typer.Exit(code=2)

    manifest = _load_or_exit(path)

    if format == "json":
        console.print_json(json.dumps(manifest.to_dict(), default=str))
        return

    console.print(f"[bold]Version:[/bold] {manifest.version}")
    console.print(f"[bold]Environment:[/bold] {manifest.environment.value}")

    table = Table(title="Adapters")
    table.add_column("Port")
    table.add_column("Adapter")
    table.add_column("Enabled")
    table.add_column("Config keys")
    for port, declaration in sorted(manifest.adapters.items()):
        table.add_row(
            port,
            declaration.adapter_reference,
            "yes" if declaration.enabled else "no",
            ", ".join(sorted(declaration.config)) or "-",
        )
    console.print(table)

    if manifest.extensions:
        console.print(f"[bold]Extensions:[/bold] {', '.join(sorted(manifest.extensions))}")


@app.command("schema")
def show_schema() -> None:
    """Print the manifest JSON schema."""
    console.print_json(json.dumps(schema_definition()))
