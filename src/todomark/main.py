"""main.py - Umbrella CLI entry point for todomark.

Registers every single-command module as a flat ``app.command()`` entry so
that ``todomark scan FILE`` works without a Typer sub-group.
"""

import importlib

import typer

app = typer.Typer(
    help="Find TODO/FIXME-style annotations inside source-code comments.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  todomark init                Write a starter todomark.toml
  todomark kinds               Check which kinds the config defines
  todomark scan src/*.py       Report every annotation
  todomark scan --show a.c     Show a file with annotations highlighted

[dim]All commands read todomark.toml from the cwd or a parent directory,
falling back to built-in defaults.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

_SINGLE_COMMANDS: list[tuple[str, str, str]] = [
    ("scan", "todomark.scan_cli", "Scan source files for annotations in comments."),
    ("kinds", "todomark.kinds", "List configured annotation kinds and languages."),
    ("init", "todomark.init", "Write a starter todomark.toml."),
]

for _name, _module, _help in _SINGLE_COMMANDS:
    _mod = importlib.import_module(_module)
    _epilog = getattr(_mod.app.info, "epilog", None)
    if not isinstance(_epilog, str):
        _epilog = None
    app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
