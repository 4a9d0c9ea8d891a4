"""render.py - Rendering sinks that receive decorations per annotation kind.

The scanner talks to a sink through three calls:

- ``create_style(kind, options)`` once per kind per registry generation,
- ``dispose_style(handle)`` when that generation is replaced,
- ``paint(handle, document, decorations)`` which *replaces* everything
  previously painted with that handle on that document.

:class:`RecordingSink` keeps the painted state in memory.
:class:`ConsoleSink` adds a ``rich`` rendering of a painted document.
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from rich.color import Color, ColorParseError
from rich.console import Console
from rich.style import Style
from rich.text import Text

from todomark.document import TextDocument
from todomark.scan import Decoration, Document


@dataclass(eq=False)
class StyleHandle:
    """A style allocated for one annotation kind in one registry generation."""

    kind: str
    options: Mapping[str, Any] = field(default_factory=dict)
    ident: int = 0
    disposed: bool = False

    def __repr__(self) -> str:
        state = " disposed" if self.disposed else ""
        return f"<StyleHandle {self.kind}#{self.ident}{state}>"


class DisposedStyleError(RuntimeError):
    """A style handle was used after its registry generation was released."""


class RenderSink(Protocol):
    def create_style(self, kind: str, options: Mapping[str, Any]) -> StyleHandle: ...

    def dispose_style(self, handle: StyleHandle) -> None: ...

    def paint(
        self, handle: StyleHandle | None, document: Document, decorations: list[Decoration]
    ) -> None: ...


class RecordingSink:
    """Sink that remembers the last decoration list per (style, document)."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.handles: list[StyleHandle] = []
        self.painted: dict[tuple[int, int], tuple[StyleHandle, Document, list[Decoration]]] = {}
        self.paint_calls = 0

    @property
    def live_handles(self) -> list[StyleHandle]:
        return [h for h in self.handles if not h.disposed]

    def create_style(self, kind: str, options: Mapping[str, Any]) -> StyleHandle:
        handle = StyleHandle(kind=kind, options=dict(options), ident=next(self._ids))
        self.handles.append(handle)
        return handle

    def dispose_style(self, handle: StyleHandle) -> None:
        handle.disposed = True
        # A disposed decoration type disappears from every document.
        for key in [k for k in self.painted if k[0] == handle.ident]:
            del self.painted[key]

    def paint(
        self, handle: StyleHandle | None, document: Document, decorations: list[Decoration]
    ) -> None:
        if handle is None:
            return
        if handle.disposed:
            raise DisposedStyleError(f"cannot paint with {handle!r}")
        self.paint_calls += 1
        self.painted[(handle.ident, id(document))] = (handle, document, list(decorations))

    def decorations_for(self, document: Document) -> dict[str, list[Decoration]]:
        """Currently painted decorations on *document*, keyed by kind."""
        return {
            handle.kind: decorations
            for handle, doc, decorations in self.painted.values()
            if doc is document
        }


# ---------------------------------------------------------------------------
# Rich rendering
# ---------------------------------------------------------------------------

_FONT_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}


def rich_style(options: Mapping[str, Any]) -> Style:
    """Translate editor-style render options into a ``rich`` style.

    Understands ``color``, ``backgroundColor``, ``fontWeight``,
    ``fontStyle`` and ``textDecoration``; anything else is ignored.
    Colours rich cannot parse (``rgba(...)``, theme colour ids) are dropped.
    """
    kwargs: dict[str, Any] = {}
    for key, arg in (("color", "color"), ("backgroundColor", "bgcolor")):
        value = options.get(key)
        if isinstance(value, str):
            try:
                Color.parse(value)
            except ColorParseError:
                continue
            kwargs[arg] = value
    if str(options.get("fontWeight", "")).lower() in _FONT_WEIGHTS:
        kwargs["bold"] = True
    if str(options.get("fontStyle", "")).lower() == "italic":
        kwargs["italic"] = True
    decoration = str(options.get("textDecoration", "")).lower()
    if "underline" in decoration:
        kwargs["underline"] = True
    if "line-through" in decoration:
        kwargs["strike"] = True
    if not kwargs:
        kwargs["reverse"] = True
    return Style(**kwargs)


class ConsoleSink(RecordingSink):
    """Recording sink that can print a highlighted document with ``rich``."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__()
        self.console = console or Console()

    def render(self, document: TextDocument) -> Text:
        """Build a ``rich`` Text of *document* with every painted range styled."""
        text = Text(document.get_text())
        for handle, doc, decorations in self.painted.values():
            if doc is not document:
                continue
            style = rich_style(handle.options)
            for decoration in decorations:
                text.stylize(style, decoration.start_offset, decoration.end_offset)
        return text

    def show(self, document: TextDocument) -> None:
        if document.uri:
            self.console.rule(document.uri)
        self.console.print(self.render(document), highlight=False)
