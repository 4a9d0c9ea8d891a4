"""extract.py - Two-stage scanning: comments out of text, annotations out of comments.

Both stages run a compiled matcher forward over a string with an explicit
:class:`ScanState` cursor.  User-supplied fragments may match the empty
string (``TODO.*?`` with a lazy tail, ``(?:)``, ``x*``), and searching again
from the same position would return the same empty match forever, so a
zero-width hit pushes the cursor one character past itself.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from todomark.grammar import LanguageDescriptor
from todomark.matcher import AnnotationMatcher


class StaleMatcher(RuntimeError):
    """A descriptor was scanned without matchers compiled for its registry."""


@dataclass
class ScanState:
    """Cursor threaded through one extraction pass."""

    cursor: int = 0

    def advance(self, start: int, end: int) -> None:
        """Move past a match spanning ``[start, end)``.

        A zero-width match moves the cursor one character forward so the
        next search cannot return the same match again.
        """
        self.cursor = end + 1 if end == start else end


@dataclass(frozen=True)
class CommentBody:
    """A comment found in a document, with its absolute start offset."""

    text: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


@dataclass(frozen=True)
class AnnotationHit:
    """An annotation occurrence in absolute document offsets."""

    kind: str
    start: int
    end: int
    value: str


def extract_comments(text: str, descriptor: LanguageDescriptor) -> Iterator[CommentBody]:
    """Yield every comment body in *text* according to *descriptor*.

    Skipped blocks are consumed without being yielded, which is what keeps a
    ``"//"`` inside a string literal from starting a comment.
    """
    matcher = descriptor.comment_matcher
    if matcher is None:
        raise StaleMatcher(f"language {sorted(descriptor.language_ids)} has not been compiled")

    state = ScanState()
    limit = len(text)
    while state.cursor <= limit:
        match = matcher.search(text, state.cursor)
        if match is None:
            return
        state.advance(match.start, match.end)
        if match.body:
            yield CommentBody(match.body, match.start)


def extract_annotations(
    body: str, offset: int, matcher: AnnotationMatcher | None
) -> Iterator[AnnotationHit]:
    """Yield every annotation inside a comment *body* that starts at *offset*."""
    if matcher is None:
        raise StaleMatcher("annotation matcher has not been compiled")

    state = ScanState()
    limit = len(body)
    while state.cursor <= limit:
        match = matcher.search(body, state.cursor)
        if match is None:
            return
        state.advance(match.start, match.end)
        # An empty capture is a real zero-width match; nothing to decorate.
        if match.value == "":
            continue
        yield AnnotationHit(match.kind, offset + match.start, offset + match.end, match.value)


def extract_document(text: str, descriptor: LanguageDescriptor) -> Iterator[AnnotationHit]:
    """Run both stages over *text* for one descriptor."""
    for comment in extract_comments(text, descriptor):
        yield from extract_annotations(comment.text, comment.offset, descriptor.annotation_matcher)
