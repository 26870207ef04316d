"""
CLI for ``logtimings``: run the sample operations and inspect settings.

Commands:
    logtimings sample     Run the sample operations against a configured logger
    logtimings settings   Show the effective ``LOGTIMINGS_*`` settings
"""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

app = typer.Typer(
    name="logtimings",
    help="logtimings: timed operations for structured logging.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _exit_with_error(message: str, code: int = 2) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red]: {escape(message)}")
    raise typer.Exit(code=code)


def _version_callback(value: bool) -> None:
    if value:
        from logtimings import __version__

        console.print(f"logtimings {__version__}")
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
) -> None:
    """logtimings CLI."""


@app.command("sample")
def sample(
    level: str = typer.Option("TRACE", "--level", "-l", help="Minimum level to show."),
    log_format: str = typer.Option("console", "--format", "-f", help="console or json."),
    user_id: int = typer.Option(1, "--user-id", help="User id bound into the sample templates."),
) -> None:
    """Run the sample operations and print their records."""
    from pydantic import ValidationError

    from logtimings.errors import InvalidArgumentError
    from logtimings.logging import configure_logging, get_logger
    from logtimings.sample import run_sample

    if log_format not in ("console", "json"):
        _exit_with_error(f"Unknown format: {log_format}")

    try:
        configure_logging(level=level, format=log_format, force=True)
    except InvalidArgumentError as e:
        _exit_with_error(e.message)
    except ValidationError as e:
        _exit_with_error(f"Invalid settings: {e.error_count()} error(s)\n{e}", code=1)

    run_sample(get_logger("logtimings.sample"), user_id=user_id)


@app.command("settings")
def show_settings(
    output: str = typer.Option("table", "--output", "-o", help="table or json."),
) -> None:
    """Show the effective settings after environment and .env resolution."""
    from pydantic import ValidationError

    from logtimings.settings import get_settings

    try:
        values = _settings_values(get_settings())
    except ValidationError as e:
        _exit_with_error(f"Invalid settings: {e.error_count()} error(s)\n{e}", code=1)

    if output == "json":
        console.print_json(json.dumps(values))
        return
    if output != "table":
        _exit_with_error(f"Unknown output: {output}")

    table = Table(title="logtimings settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


def _settings_values(settings: Any) -> dict[str, Any]:
    return {
        "log_level": settings.log_level,
        "log_format": settings.log_format,
        "completion_level": settings.completion_level.name,
        "abandonment_level": settings.abandonment_level.name,
        "warning_threshold_ms": settings.warning_threshold_ms,
    }
