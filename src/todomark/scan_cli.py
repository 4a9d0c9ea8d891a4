"""scan_cli.py - Scan source files for annotations and report them.

Opens every file as a visible document, starts a session against the
configuration, and reports what was painted: a table, JSON, or the source
itself with annotations highlighted.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from todomark.cli import ConfigOption, error_exit, get_config, json_print, warn
from todomark.document import TextDocument, Workspace
from todomark.render import ConsoleSink, rich_style
from todomark.session import Session

out_console = Console()

app = typer.Typer(
    help="Scan source files for annotations in comments.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

todomark scan src/*.c                   Table of every annotation

todomark scan --show main.py            Print the file with annotations highlighted

todomark scan --json --kind TODO a.ts   Only TODOs, as JSON

todomark scan --fail-on FIXME src/*.py  Exit 1 if any FIXME is found

[dim]The language of each file is guessed from its suffix; use --language to force one.[/dim]""",
)


@dataclass
class Finding:
    """One annotation found in one file."""

    path: str
    kind: str
    line: int
    column: int
    text: str
    hover: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "file": self.path,
            "kind": self.kind,
            "line": self.line,
            "column": self.column,
            "text": self.text,
        }
        if self.hover is not None:
            out["hover"] = self.hover
        return out


def collect_findings(
    sink: ConsoleSink, documents: list[TextDocument], kinds: list[str] | None = None
) -> list[Finding]:
    """Flatten painted decorations into findings, ordered by file then offset."""
    findings: list[Finding] = []
    for document in documents:
        text = document.get_text()
        painted = sink.decorations_for(document)
        per_doc: list[tuple[int, Finding]] = []
        for kind, decorations in painted.items():
            if kinds and kind not in kinds:
                continue
            for deco in decorations:
                per_doc.append(
                    (
                        deco.start_offset,
                        Finding(
                            path=document.uri,
                            kind=kind,
                            line=deco.range.start.line + 1,
                            column=deco.range.start.character + 1,
                            text=text[deco.start_offset : deco.end_offset],
                            hover=deco.hover.value if deco.hover else None,
                        ),
                    )
                )
        per_doc.sort(key=lambda item: item[0])
        findings.extend(f for _, f in per_doc)
    return findings


def _open_documents(files: list[Path], language: str | None) -> Workspace:
    workspace = Workspace()
    for path in files:
        try:
            workspace.open(TextDocument.from_path(path, language))
        except OSError as exc:
            warn(f"cannot read {path}: {exc.strerror or exc}")
    return workspace


def _print_table(findings: list[Finding], sink: ConsoleSink) -> None:
    styles = {h.kind: rich_style(h.options) for h in sink.live_handles}
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Location", no_wrap=True)
    table.add_column("Kind", no_wrap=True)
    table.add_column("Text")
    for f in findings:
        table.add_row(
            f"{f.path}:{f.line}:{f.column}",
            Text(f.kind, style=styles.get(f.kind, "")),
            Text(f.text),
        )
    out_console.print(table)


@app.callback(invoke_without_command=True)
def main(
    files: list[Path] | None = typer.Argument(None, help="Source files to scan."),
    language: str | None = typer.Option(
        None, "--language", "-l", help="Language tag for every file (default: from suffix)."
    ),
    kind: list[str] = typer.Option(None, "--kind", "-k", help="Only report these kinds."),
    fail_on: list[str] = typer.Option(
        None, "--fail-on", help="Exit with code 1 if any annotation of this kind is found."
    ),
    show: bool = typer.Option(False, "--show", help="Print files with annotations highlighted."),
    config: Path | None = ConfigOption,
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON."),
) -> None:
    """Scan FILES for annotations in comments."""
    if not files:
        error_exit("At least one file is required", json_mode=json_output)

    cfg = get_config(config, json_mode=json_output)
    if not cfg.is_complete:
        missing = "annotations" if cfg.annotations is None else "languages"
        error_exit(f"{cfg.path}: no '{missing}' section", json_mode=json_output)

    workspace = _open_documents(files, language)
    sink = ConsoleSink(out_console)
    session = Session(workspace, sink, config_source=lambda: cfg)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        registry = session.start()
    for w in caught:
        warn(str(w.message))
    if registry is None:
        error_exit(str(session.last_error or "no annotations configured"), json_mode=json_output)

    unknown = sorted((set(kind or []) | set(fail_on or [])) - set(registry.kinds))
    if unknown:
        warn(f"unknown annotation kinds: {', '.join(unknown)}")

    documents = workspace.get_visible_documents()
    all_findings = collect_findings(sink, documents)
    findings = [f for f in all_findings if not kind or f.kind in kind]

    if json_output:
        json_print(
            {
                "files": len(documents),
                "total": len(findings),
                "annotations": [f.to_dict() for f in findings],
            }
        )
    elif show:
        for document in documents:
            sink.show(document)
    else:
        if findings:
            _print_table(findings, sink)
        summary = Text(f"\n{len(findings)} annotations in {len(documents)} files")
        out_console.print(summary)

    session.close()

    if fail_on and any(f.kind in fail_on for f in all_findings):
        raise typer.Exit(code=1)


def main_entry() -> None:
    """Package entry point for ``todomark-scan``."""
    app()


if __name__ == "__main__":
    main_entry()
