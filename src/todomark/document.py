"""document.py - In-memory host documents and the set of visible documents.

Stands in for the editor side of the scanner: text, a language tag, and
offset -> (line, character) conversion.
"""

from __future__ import annotations

import bisect
from pathlib import Path

from todomark.scan import Position

# File suffix -> language tag.  Tags follow the editor's language identifiers
# so that the same ``languageIds`` config works in both places.
SUFFIX_LANGUAGES: dict[str, str] = {
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".cu": "cuda-cpp",
    ".cs": "csharp",
    ".dart": "dart",
    ".go": "go",
    ".groovy": "groovy",
    ".java": "java",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".jsonc": "jsonc",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".m": "objective-c",
    ".mm": "objective-cpp",
    ".php": "php",
    ".rs": "rust",
    ".scala": "scala",
    ".swift": "swift",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".zig": "zig",
    ".py": "python",
    ".pyi": "python",
    ".coffee": "coffeescript",
    ".pl": "perl",
    ".ps1": "powershell",
    ".r": "r",
    ".rb": "ruby",
    ".sh": "shellscript",
    ".bash": "shellscript",
    ".zsh": "shellscript",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".hs": "haskell",
    ".lua": "lua",
    ".sql": "sql",
    ".html": "html",
    ".htm": "html",
    ".md": "markdown",
    ".xml": "xml",
    ".vue": "vue",
    ".svelte": "svelte",
    ".bat": "bat",
    ".cmd": "bat",
    ".txt": "plaintext",
}

# Whole file names that carry no useful suffix.
NAME_LANGUAGES: dict[str, str] = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
    "GNUmakefile": "makefile",
}


def guess_language(path: Path) -> str:
    """Guess the language tag of *path*, falling back to ``plaintext``."""
    if path.name in NAME_LANGUAGES:
        return NAME_LANGUAGES[path.name]
    return SUFFIX_LANGUAGES.get(path.suffix.lower(), "plaintext")


class TextDocument:
    """Document text plus the line table needed for position conversion."""

    def __init__(self, text: str, language: str = "plaintext", uri: str = "") -> None:
        self._language = language
        self.uri = uri
        self.set_text(text)

    @classmethod
    def from_path(cls, path: Path, language: str | None = None) -> TextDocument:
        """Read *path* as UTF-8; undecodable bytes are replaced."""
        text = path.read_text(encoding="utf-8", errors="replace")
        return cls(text, language or guess_language(path), uri=str(path))

    def set_text(self, text: str) -> None:
        """Replace the whole text, as an edit in the host would."""
        self._text = text
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def get_text(self) -> str:
        return self._text

    def language_tag(self) -> str:
        return self._language

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def offset_to_position(self, offset: int) -> Position:
        """Convert a character offset to a position, clamped to the text."""
        offset = max(0, min(offset, len(self._text)))
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(line, offset - self._line_starts[line])

    def position_to_offset(self, position: Position) -> int:
        if position.line < 0:
            return 0
        if position.line >= len(self._line_starts):
            return len(self._text)
        start = self._line_starts[position.line]
        if position.line + 1 < len(self._line_starts):
            end = self._line_starts[position.line + 1] - 1
        else:
            end = len(self._text)
        return min(start + max(position.character, 0), end)

    def __repr__(self) -> str:
        return f"TextDocument(uri={self.uri!r}, language={self._language!r})"


class Workspace:
    """Ordered set of open documents; all of them count as visible."""

    def __init__(self, documents: list[TextDocument] | None = None) -> None:
        self._documents: list[TextDocument] = list(documents or [])
        self.active: TextDocument | None = self._documents[0] if self._documents else None

    def open(self, document: TextDocument) -> TextDocument:
        self._documents.append(document)
        if self.active is None:
            self.active = document
        return document

    def close(self, document: TextDocument) -> None:
        self._documents.remove(document)
        if self.active is document:
            self.active = self._documents[0] if self._documents else None

    def set_active(self, document: TextDocument) -> None:
        if document not in self._documents:
            raise ValueError(f"{document!r} is not open")
        self.active = document

    def get_visible_documents(self) -> list[TextDocument]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)
