"""Shared CLI utilities for todomark commands.

Provides the common ``--config`` option, config-loading helper, and
standardised output / error helpers so that every command reports errors
and JSON the same way.

Usage in a command::

    import typer
    from todomark.cli import ConfigOption, error_exit, get_config, json_print

    app = typer.Typer()

    @app.callback(invoke_without_command=True)
    def main(config: Path | None = ConfigOption) -> None:
        cfg = get_config(config)
        ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from todomark.config import ConfigError, TodomarkConfig, load_config

# Re-usable Typer option for --config
ConfigOption: Path | None = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to todomark.toml (default: search upward from cwd, else built-in defaults).",
)

err_console = Console(stderr=True)


def get_config(path: Path | None = None, *, json_mode: bool = False) -> TodomarkConfig:
    """Load the configuration, exiting with an error message if it is unusable."""
    try:
        return load_config(path)
    except (FileNotFoundError, ConfigError) as exc:
        error_exit(str(exc), json_mode=json_mode)


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        err_console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False)
    raise typer.Exit(code=code)


def warn(msg: str) -> None:
    """Print a non-fatal diagnostic to stderr."""
    err_console.print(f"[yellow]warning:[/yellow] {escape(msg)}", highlight=False)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))
