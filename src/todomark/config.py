r"""Configuration loader for todomark.

Reads ``todomark.toml`` and exposes its two sections, ``annotations`` and
``languages``, exactly as the registry consumes them::

    [[annotations]]
    name = "TODO"
    pattern = "TODO:?.*"
    color = "yellow"
    fontWeight = "bold"

    [[languages]]
    languageIds = ["c", "cpp"]
    lineComments = ['//.*']
    blockComments = ['/\*[\s\S]*?\*/']
    skippedBlocks = ['"(?:[^"\\\n]|\\.)*"']

A section that is absent from the file is reported as ``None`` rather than
an empty list: the session treats that as "configuration incomplete" and
keeps the registry it already has.  When no file exists at all the built-in
defaults are used.

Usage::

    from todomark.config import load_config

    cfg = load_config()              # search upward from cwd
    cfg = load_config(Path("x.toml"))
"""

from __future__ import annotations

import copy
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit

from todomark.grammar import DEFAULT_LANGUAGES

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_FILENAME = "todomark.toml"


class ConfigError(ValueError):
    """The configuration file exists but cannot be used."""


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_ANNOTATIONS: list[dict[str, Any]] = [
    {
        "name": "TODO",
        "pattern": r"\bTODO\b(?:\([^)]*\))?:?.*",
        "color": "#ffcc00",
        "fontWeight": "bold",
    },
    {
        "name": "FIXME",
        "pattern": r"\bFIXME\b(?:\([^)]*\))?:?.*",
        "color": "#ff5555",
        "fontWeight": "bold",
    },
    {
        "name": "HACK",
        "pattern": r"\bHACK\b:?.*",
        "color": "#ff8800",
    },
    {
        "name": "XXX",
        "pattern": r"\bXXX\b:?.*",
        "color": "#ff00ff",
    },
    {
        "name": "NOTE",
        "pattern": r"\bNOTE\b(?:@\w+)?:?.*",
        "color": "#55aaff",
        "fontStyle": "italic",
    },
    {
        "name": "INFO",
        "pattern": r"\$\(info\).*",
        "color": "#55ffaa",
        "isMarkdown": True,
    },
]


@dataclass
class TodomarkConfig:
    """Parsed configuration.  ``None`` means the section was not present."""

    annotations: list[dict[str, Any]] | None
    languages: list[dict[str, Any]] | None
    path: Path | None = None

    @property
    def is_complete(self) -> bool:
        return self.annotations is not None and self.languages is not None


def default_config() -> TodomarkConfig:
    """The built-in configuration, as fresh copies."""
    return TodomarkConfig(
        annotations=copy.deepcopy(DEFAULT_ANNOTATIONS),
        languages=copy.deepcopy(DEFAULT_LANGUAGES),
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (or cwd) looking for ``todomark.toml``."""
    candidate = (start or Path.cwd()).resolve()
    while True:
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path
        if candidate == candidate.parent:
            return None
        candidate = candidate.parent


def _section(raw: dict[str, Any], key: str, path: Path) -> list[dict[str, Any]] | None:
    if key not in raw:
        return None
    value = raw[key]
    if not isinstance(value, list):
        raise ConfigError(f"{path}: '{key}' must be an array of tables")
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ConfigError(f"{path}: {key}[{index}] must be a table")
    return value


def load_config(path: Path | None = None) -> TodomarkConfig:
    """Load the configuration.

    Args:
        path: Explicit config file.  When ``None`` the file is searched for
              upward from the cwd, and the defaults are returned if none is
              found.

    Raises:
        FileNotFoundError: *path* was given and does not exist.
        ConfigError: the file is not valid TOML or a section has the wrong shape.
    """
    if path is None:
        path = find_config()
        if path is None:
            return default_config()
    elif not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from exc

    return TodomarkConfig(
        annotations=_section(raw, "annotations", path),
        languages=_section(raw, "languages", path),
        path=path,
    )


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def render_default_config() -> str:
    """Render the built-in configuration as a commented TOML document."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("todomark configuration"))
    doc.add(tomlkit.comment("Each annotation becomes a named group in one combined regex,"))
    doc.add(tomlkit.comment("so names must be identifiers.  Remaining keys are render style."))
    doc.add(tomlkit.nl())

    annotations = tomlkit.aot()
    for entry in DEFAULT_ANNOTATIONS:
        annotations.append(tomlkit.item(entry))
    doc.add("annotations", annotations)

    languages = tomlkit.aot()
    for entry in DEFAULT_LANGUAGES:
        languages.append(tomlkit.item(entry))
    doc.add("languages", languages)
    return tomlkit.dumps(doc)


def write_default_config(path: Path, *, overwrite: bool = False) -> Path:
    """Write the built-in configuration to *path*."""
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists")
    path.write_text(render_default_config(), encoding="utf-8")
    return path
