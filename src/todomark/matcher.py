"""matcher.py - Combined-regex construction for comments and annotations.

Two expressions are built per registry generation:

1. **Comment matcher** (one per language descriptor)::

       (?P<body>LINE_1|LINE_2|BLOCK_1)|(?:SKIP_1|SKIP_2)

   A match with a ``body`` group is a comment; a match without one is a
   skipped block (string literal etc.) that is consumed so the scanner never
   looks for comments inside it.  Line comments come first, then block
   comments, then skipped blocks.  At a given position the first alternative
   that matches wins.

2. **Annotation matcher** (shared by every descriptor of a registry)::

       (?P<TODO>TODO:?.*)|(?P<FIXME>FIXME.*)|...

   One named group per annotation kind, in registry order.  The matcher
   resolves which group fired and returns a tagged :class:`AnnotationMatch`
   so callers never inspect group names themselves.

Configuration fragments are often written for JavaScript engines, so the
``(?<name>...)`` and ``\\k<name>`` spellings are rewritten to Python's
``(?P<name>...)`` and ``(?P=name)`` before compiling.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from todomark.errors import MalformedPattern
from todomark.grammar import LanguageDescriptor

# ---------------------------------------------------------------------------
# Fragment normalisation
# ---------------------------------------------------------------------------

_JS_NAMED_BACKREF_RE = re.compile(r"\\k<(\w+)>")
_LOOKBEHINDS = ("(?<=", "(?<!")

# Empty pattern that can never match, used when a descriptor has no fragments.
NEVER_MATCH = "(?!)"

BODY_GROUP = "body"


def to_python_syntax(fragment: str) -> str:
    """Rewrite JavaScript-only named-group syntax into Python ``re`` syntax.

    ``(?<name>`` becomes ``(?P<name>`` and ``\\k<name>`` becomes
    ``(?P=name)``.  Escaped characters and ``[...]`` classes are copied
    unchanged, and lookbehinds are left alone.
    """
    out: list[str] = []
    pos = 0
    in_class = False
    while pos < len(fragment):
        char = fragment[pos]
        if char == "\\":
            backref = None if in_class else _JS_NAMED_BACKREF_RE.match(fragment, pos)
            if backref is not None:
                out.append(f"(?P={backref.group(1)})")
                pos = backref.end()
            else:
                out.append(fragment[pos : pos + 2])
                pos += 2
            continue
        if in_class:
            in_class = char != "]"
        elif char == "[":
            # ``[]...]`` and ``[^]...]`` start with a literal ``]``.
            end = pos + 1
            if fragment.startswith("^", end):
                end += 1
            if fragment.startswith("]", end):
                end += 1
            out.append(fragment[pos:end])
            pos = end
            in_class = True
            continue
        elif fragment.startswith("(?<", pos) and not fragment.startswith(_LOOKBEHINDS, pos):
            out.append("(?P<")
            pos += 3
            continue
        out.append(char)
        pos += 1
    return "".join(out)


def _check_fragment(owner: str, fragment: str) -> str:
    """Normalise *fragment* and make sure it compiles on its own."""
    if not isinstance(fragment, str):
        raise MalformedPattern(owner, repr(fragment), "pattern must be a string")
    converted = to_python_syntax(fragment)
    try:
        re.compile(converted)
    except re.error as exc:
        raise MalformedPattern(owner, fragment, str(exc)) from exc
    return converted


def _compile(owner: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        # Fragments compile alone but clash once combined (e.g. a group
        # name reused by two fragments).
        raise MalformedPattern(owner, pattern, str(exc)) from exc


# ---------------------------------------------------------------------------
# Comment matcher
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommentMatch:
    """One hit of the comment matcher.

    ``body`` is ``None`` when the hit was a skipped block.
    """

    start: int
    end: int
    body: str | None

    @property
    def is_comment(self) -> bool:
        return self.body is not None


class CommentMatcher:
    """Compiled comment/skipped-block expression for one language descriptor."""

    def __init__(self, regex: re.Pattern[str]) -> None:
        self.regex = regex

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    def search(self, text: str, pos: int) -> CommentMatch | None:
        """Find the next comment or skipped block at or after *pos*."""
        m = self.regex.search(text, pos)
        if m is None:
            return None
        body = m.group(BODY_GROUP)
        if body is None:
            return CommentMatch(m.start(), m.end(), None)
        return CommentMatch(m.start(BODY_GROUP), m.end(BODY_GROUP), body)

    def __repr__(self) -> str:
        return f"CommentMatcher({self.pattern!r})"


def build_comment_pattern(descriptor: LanguageDescriptor) -> str:
    """Return the combined comment pattern source for *descriptor*."""
    owner = f"language {sorted(descriptor.language_ids)}"
    comments = [_check_fragment(owner, f) for f in descriptor.line_comments]
    comments += [_check_fragment(owner, f) for f in descriptor.block_comments]
    skipped = [_check_fragment(owner, f) for f in descriptor.skipped_blocks]

    # Empty alternatives would match the empty string everywhere, so an
    # empty list contributes nothing rather than ``(?P<body>)``.
    body = "|".join(comments) if comments else NEVER_MATCH
    parts = [f"(?P<{BODY_GROUP}>{body})"]
    if skipped:
        parts.append(f"(?:{'|'.join(skipped)})")
    return "|".join(parts)


def compile_comment_matcher(descriptor: LanguageDescriptor) -> CommentMatcher:
    """Compile the comment matcher for one language descriptor."""
    owner = f"language {sorted(descriptor.language_ids)}"
    return CommentMatcher(_compile(owner, build_comment_pattern(descriptor)))


# ---------------------------------------------------------------------------
# Annotation matcher
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnnotationMatch:
    """One hit of the annotation matcher, tagged with the kind that fired."""

    kind: str
    start: int
    end: int
    value: str


class AnnotationMatcher:
    """Compiled union of every annotation kind's pattern."""

    def __init__(self, regex: re.Pattern[str], kinds: Iterable[str]) -> None:
        self.regex = regex
        self.kinds = tuple(kinds)
        # Group index -> kind name, in alternation order.
        self._groups = tuple((regex.groupindex[name], name) for name in self.kinds)

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    def search(self, text: str, pos: int) -> AnnotationMatch | None:
        """Find the next annotation at or after *pos*."""
        m = self.regex.search(text, pos)
        if m is None:
            return None
        for index, kind in self._groups:
            if m.start(index) != -1:
                return AnnotationMatch(kind, m.start(), m.end(), m.group(index))
        # Only reachable with no kinds at all, where the pattern never matches.
        raise AssertionError(f"annotation match without a kind group: {m!r}")

    def __repr__(self) -> str:
        return f"AnnotationMatcher({self.pattern!r})"


def build_annotation_pattern(patterns: Mapping[str, str]) -> str:
    """Return the combined annotation pattern source for ``{name: fragment}``."""
    groups = [
        f"(?P<{name}>{_check_fragment(f'annotation {name}', fragment)})"
        for name, fragment in patterns.items()
    ]
    return "|".join(groups) if groups else NEVER_MATCH


def compile_annotation_matcher(patterns: Mapping[str, str]) -> AnnotationMatcher:
    """Compile one matcher unioning every annotation kind in *patterns* order."""
    regex = _compile("annotations", build_annotation_pattern(patterns))
    return AnnotationMatcher(regex, patterns.keys())


def compile_language(
    descriptor: LanguageDescriptor, annotation_matcher: AnnotationMatcher
) -> LanguageDescriptor:
    """Attach freshly compiled matchers to *descriptor* and return it."""
    descriptor.comment_matcher = compile_comment_matcher(descriptor)
    descriptor.annotation_matcher = annotation_matcher
    return descriptor
