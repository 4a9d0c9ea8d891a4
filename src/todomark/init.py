"""Write a starter todomark.toml.

Usage:
    todomark init [--force] [--path FILE]
"""

from pathlib import Path

import typer

from todomark.cli import error_exit
from todomark.config import CONFIG_FILENAME, write_default_config

app = typer.Typer(
    help="Write a starter todomark.toml with the built-in kinds and languages.",
    rich_markup_mode="rich",
    epilog="""\
[bold]What it creates:[/bold]

todomark.toml          TODO, FIXME, HACK, XXX, NOTE and INFO kinds plus the default language table

[dim]Edit the file to add kinds or languages; every command picks it up from the cwd or a parent.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    path: Path = typer.Option(Path(CONFIG_FILENAME), "--path", help="File to write."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Create todomark.toml in the current directory."""
    try:
        write_default_config(path, overwrite=force)
    except FileExistsError:
        error_exit(f"{path} already exists (use --force to overwrite)")
    typer.echo(f"Wrote {path}")


def main_entry() -> None:
    """Package entry point for ``todomark-init``."""
    app()


if __name__ == "__main__":
    main_entry()
