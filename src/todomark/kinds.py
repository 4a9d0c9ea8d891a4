"""kinds.py - List the configured annotation kinds and languages.

Builds the registry exactly as a scan would, so a configuration that this
command accepts is one that ``todomark scan`` accepts too.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from todomark.cli import ConfigOption, error_exit, get_config, json_print
from todomark.errors import RegistryError
from todomark.registry import rebuild
from todomark.render import RecordingSink, rich_style

out_console = Console()

app = typer.Typer(
    help="List configured annotation kinds and languages.",
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    config: Path | None = ConfigOption,
    languages: bool = typer.Option(False, "--languages", help="Also list language grammars."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show annotation kinds in registry order."""
    cfg = get_config(config, json_mode=json_output)
    sink = RecordingSink()
    try:
        registry = rebuild(cfg.annotations, cfg.languages, sink)
    except RegistryError as exc:
        error_exit(str(exc), json_mode=json_output)

    if json_output:
        json_print(
            {
                "source": str(cfg.path) if cfg.path else "defaults",
                "kinds": [
                    {
                        "name": k.name,
                        "pattern": k.pattern,
                        "markdown": k.is_rich_content,
                        "style": dict(k.render_style),
                    }
                    for k in registry.kinds.values()
                ],
                "languages": [lang.to_config() for lang in registry.languages],
            }
        )
        return

    out_console.print(f"[dim]config: {cfg.path or 'built-in defaults'}[/dim]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", no_wrap=True)
    table.add_column("Pattern")
    table.add_column("Markdown", justify="center")
    for k in registry.kinds.values():
        table.add_row(
            Text(k.name, style=rich_style(k.render_style)),
            Text(k.pattern),
            "yes" if k.is_rich_content else "",
        )
    out_console.print(table)

    if languages:
        lang_table = Table(show_header=True, header_style="bold")
        lang_table.add_column("Languages")
        lang_table.add_column("Line")
        lang_table.add_column("Block")
        lang_table.add_column("Skipped")
        for lang in registry.languages:
            lang_table.add_row(
                ", ".join(sorted(lang.language_ids)),
                Text("  ".join(lang.line_comments)),
                Text("  ".join(lang.block_comments)),
                str(len(lang.skipped_blocks)),
            )
        out_console.print(lang_table)


def main_entry() -> None:
    """Package entry point for ``todomark-kinds``."""
    app()


if __name__ == "__main__":
    main_entry()
