"""
Root Typer application for the portfolio-core CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from portfolio_core.core.logging import configure_logging

app = Typer(
    name="portfolio-core",
    help="portfolio-core: manifest-driven adapter wiring.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from portfolio_core import __version__

        typer.echo(f"portfolio-core {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for diagnostics."),
) -> None:
    """portfolio-core CLI: validate and inspect manifests."""
    configure_logging(level=log_level, json_format=False)


# ── Sub-command registration ─────────────────────────────────────────────

from portfolio_core.cli.manifest import app as manifest_app  # noqa: E402

app.add_typer(manifest_app, name="manifest", help="Manifest validation and inspection.")


if __name__ == "__main__":
    app()
