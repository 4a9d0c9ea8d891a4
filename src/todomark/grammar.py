"""grammar.py - Language grammar table for comment detection.

Each :class:`LanguageDescriptor` describes how comments look in one or more
languages: line-comment prefixes, block-comment delimiter pairs, and
"skipped blocks" (string and char literals) that must be stepped over so
that ``"// not a comment"`` is never treated as commentary.

All patterns are regex *fragments*; they are unioned into one combined
expression per descriptor by :mod:`todomark.matcher`.  Within each list,
order matters: alternation is first-match-wins, so write the most specific
fragment first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from todomark.errors import RegistryError

if TYPE_CHECKING:
    from todomark.matcher import AnnotationMatcher, CommentMatcher


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------

# Config keys as written in todomark.toml, with snake_case aliases.
_KEY_ALIASES = {
    "languageIds": "language_ids",
    "lineComments": "line_comments",
    "blockComments": "block_comments",
    "skippedBlocks": "skipped_blocks",
}


class GrammarError(RegistryError):
    """A language entry in the configuration is malformed."""


@dataclass
class LanguageDescriptor:
    """Comment grammar for a set of language tags.

    ``comment_matcher`` and ``annotation_matcher`` are derived state.  They
    are attached by :func:`todomark.matcher.compile_language` when a registry
    is built and belong to that registry generation only.
    """

    language_ids: frozenset[str]
    line_comments: tuple[str, ...] = ()
    block_comments: tuple[str, ...] = ()
    skipped_blocks: tuple[str, ...] = ()

    comment_matcher: CommentMatcher | None = field(default=None, repr=False, compare=False)
    annotation_matcher: AnnotationMatcher | None = field(
        default=None, repr=False, compare=False
    )

    def matches(self, language_tag: str) -> bool:
        """True if this descriptor applies to *language_tag*."""
        return language_tag in self.language_ids

    @property
    def is_compiled(self) -> bool:
        return self.comment_matcher is not None and self.annotation_matcher is not None

    @classmethod
    def from_config(cls, raw: Mapping[str, Any]) -> LanguageDescriptor:
        """Build a descriptor from one ``[[languages]]`` config entry.

        Accepts both the camelCase keys of the configuration schema
        (``languageIds``, ``lineComments``, ...) and their snake_case forms.
        """
        if not isinstance(raw, Mapping):
            raise GrammarError(f"language entry must be a table, got {type(raw).__name__}")
        norm = {_KEY_ALIASES.get(k, k): v for k, v in raw.items()}

        ids = _string_list(norm.get("language_ids"), "languageIds")
        if not ids:
            raise GrammarError("language entry has no languageIds")

        return cls(
            language_ids=frozenset(ids),
            line_comments=tuple(_string_list(norm.get("line_comments"), "lineComments")),
            block_comments=tuple(_string_list(norm.get("block_comments"), "blockComments")),
            skipped_blocks=tuple(_string_list(norm.get("skipped_blocks"), "skippedBlocks")),
        )

    def to_config(self) -> dict[str, list[str]]:
        """Serialize back to the camelCase config schema."""
        return {
            "languageIds": sorted(self.language_ids),
            "lineComments": list(self.line_comments),
            "blockComments": list(self.block_comments),
            "skippedBlocks": list(self.skipped_blocks),
        }


def _string_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise GrammarError(f"{key} must be a list of strings")
    items = list(value)
    for item in items:
        if not isinstance(item, str):
            raise GrammarError(f"{key} must be a list of strings, got {item!r}")
    return items


def descriptors_from_config(entries: Iterable[Mapping[str, Any]]) -> list[LanguageDescriptor]:
    """Convert a list of ``[[languages]]`` entries, preserving order."""
    return [LanguageDescriptor.from_config(entry) for entry in entries]


# ---------------------------------------------------------------------------
# Built-in table
# ---------------------------------------------------------------------------

# Double- and single-quoted literals with backslash escapes.
_DQ_STRING = r'"(?:[^"\\\n]|\\.)*"'
_SQ_STRING = r"'(?:[^'\\\n]|\\.)*'"
_BACKTICK_STRING = r"`(?:[^`\\]|\\.)*`"

DEFAULT_LANGUAGES: list[dict[str, list[str]]] = [
    {
        "languageIds": [
            "c",
            "cpp",
            "csharp",
            "cuda-cpp",
            "dart",
            "go",
            "groovy",
            "java",
            "javascript",
            "javascriptreact",
            "jsonc",
            "kotlin",
            "objective-c",
            "objective-cpp",
            "php",
            "rust",
            "scala",
            "swift",
            "typescript",
            "typescriptreact",
            "zig",
        ],
        "lineComments": [r"//.*"],
        "blockComments": [r"/\*[\s\S]*?\*/"],
        "skippedBlocks": [_DQ_STRING, _SQ_STRING, _BACKTICK_STRING],
    },
    {
        "languageIds": ["python"],
        "lineComments": [r"#.*"],
        "blockComments": [],
        # Triple-quoted strings first so '"""' is not read as '""' + '"'.
        "skippedBlocks": [r'"""[\s\S]*?"""', r"'''[\s\S]*?'''", _DQ_STRING, _SQ_STRING],
    },
    {
        "languageIds": [
            "coffeescript",
            "dockerfile",
            "makefile",
            "perl",
            "powershell",
            "r",
            "ruby",
            "shellscript",
            "toml",
            "yaml",
        ],
        "lineComments": [r"#.*"],
        "blockComments": [],
        "skippedBlocks": [_DQ_STRING, _SQ_STRING],
    },
    {
        "languageIds": ["haskell", "lua", "sql"],
        "lineComments": [r"--(?!\[\[).*"],
        "blockComments": [r"--\[\[[\s\S]*?\]\]", r"\{-[\s\S]*?-\}", r"/\*[\s\S]*?\*/"],
        "skippedBlocks": [_DQ_STRING, _SQ_STRING],
    },
    {
        "languageIds": ["html", "markdown", "xml", "vue", "svelte"],
        "lineComments": [],
        "blockComments": [r"<!--[\s\S]*?-->"],
        "skippedBlocks": [],
    },
    {
        "languageIds": ["bat"],
        "lineComments": [r"(?im:^[ \t]*@?rem\b).*", r"::.*"],
        "blockComments": [],
        "skippedBlocks": [_DQ_STRING],
    },
    {
        "languageIds": ["plaintext"],
        "lineComments": [r"//.*", r"#.*"],
        "blockComments": [],
        "skippedBlocks": [],
    },
]
