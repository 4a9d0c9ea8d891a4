"""scan.py - Per-document scan: comments -> annotations -> decorations per kind.

A scan is stateless end to end.  Accumulators are created fresh for every
call, filled from every language descriptor that applies to the document,
and returned grouped by annotation kind.  Every kind of the registry is
present in the result, even with an empty list, so painting the result
clears ranges left over from an earlier scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from todomark.extract import AnnotationHit, extract_document
from todomark.registry import AnnotationKind, AnnotationRegistry

if TYPE_CHECKING:
    from todomark.render import RenderSink


class Document(Protocol):
    """What the scanner needs from a host document."""

    def get_text(self) -> str: ...

    def language_tag(self) -> str: ...

    def offset_to_position(self, offset: int) -> Position: ...


# ---------------------------------------------------------------------------
# Decoration model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line and character."""

    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position


@dataclass(frozen=True)
class HoverContent:
    """Markup hover text.  Only built for rich-content kinds, which are trusted."""

    value: str
    is_trusted: bool = True
    support_theme_icons: bool = True
    support_html: bool = True


@dataclass(frozen=True)
class Decoration:
    range: Range
    hover: HoverContent | None = None
    start_offset: int = 0
    end_offset: int = 0


Decorations = dict[str, list[Decoration]]


def make_decoration(document: Document, kind: AnnotationKind, hit: AnnotationHit) -> Decoration:
    """Convert one annotation hit into an editor decoration."""
    hover = HoverContent(hit.value) if kind.is_rich_content else None
    return Decoration(
        range=Range(document.offset_to_position(hit.start), document.offset_to_position(hit.end)),
        hover=hover,
        start_offset=hit.start,
        end_offset=hit.end,
    )


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------


def scan(document: Document, registry: AnnotationRegistry) -> Decorations:
    """Scan *document* with *registry* and group decorations by kind name."""
    accumulators: Decorations = {name: [] for name in registry.kinds}

    language = document.language_tag()
    descriptors = registry.languages_for(language)
    if not descriptors:
        return accumulators

    text = document.get_text()
    for descriptor in descriptors:
        for hit in extract_document(text, descriptor):
            kind = registry.kinds[hit.kind]
            accumulators[hit.kind].append(make_decoration(document, kind, hit))
    return accumulators


def paint_document(
    document: Document, registry: AnnotationRegistry, sink: RenderSink
) -> Decorations:
    """Scan *document* and hand every kind's list to *sink*, empty ones included."""
    decorations = scan(document, registry)
    for name, items in decorations.items():
        sink.paint(registry.kinds[name].style, document, items)
    return decorations
