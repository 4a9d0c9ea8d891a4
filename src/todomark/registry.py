"""registry.py - Annotation registry: kinds, languages and their compiled matchers.

A registry is one *generation* of configuration.  It is built in full by
:func:`rebuild` and never mutated afterwards; a configuration reload builds
a new registry and the caller swaps its reference.  Style handles belong to
the generation that allocated them and are released when it is replaced.

Usage::

    from todomark.registry import rebuild

    registry = rebuild(cfg.annotations, cfg.languages, sink)
    ...
    registry = rebuild(new_cfg.annotations, new_cfg.languages, sink, previous=registry)
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from todomark.errors import (
    ConfigMissing,
    DuplicateAnnotationName,
    InvalidAnnotationConfig,
    InvalidAnnotationName,
)
from todomark.grammar import LanguageDescriptor
from todomark.matcher import AnnotationMatcher, compile_annotation_matcher, compile_language

if TYPE_CHECKING:
    from todomark.render import RenderSink, StyleHandle

# Names become regex group names, so keep them to the portable subset.
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Keys of an annotation entry that are not passed through as render style.
_ANNOTATION_KEYS = {"name", "pattern", "isMarkdown", "is_markdown"}


# ---------------------------------------------------------------------------
# Annotation kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnnotationKind:
    """A named marker category (TODO, FIXME, ...) and its presentation."""

    name: str
    pattern: str
    render_style: Mapping[str, Any] = field(default_factory=dict)
    is_rich_content: bool = False
    style: StyleHandle | None = field(default=None, compare=False)


@dataclass(frozen=True)
class _KindSpec:
    name: str
    pattern: str
    render_style: dict[str, Any]
    is_rich_content: bool


def is_valid_name(name: object) -> bool:
    """True if *name* can be used as a capture-group name."""
    return isinstance(name, str) and _NAME_RE.fullmatch(name) is not None


def _parse_annotation(raw: Any) -> _KindSpec:
    if isinstance(raw, AnnotationKind):
        return _KindSpec(raw.name, raw.pattern, dict(raw.render_style), raw.is_rich_content)
    if not isinstance(raw, Mapping):
        raise InvalidAnnotationConfig(
            f"annotation entry must be a table, got {type(raw).__name__}"
        )
    name = raw.get("name")
    if not is_valid_name(name):
        raise InvalidAnnotationName(name)
    pattern = raw.get("pattern")
    if not isinstance(pattern, str):
        raise InvalidAnnotationConfig(f"annotation '{name}' has no pattern string")
    rich = raw.get("isMarkdown", raw.get("is_markdown", False))
    if not isinstance(rich, bool):
        raise InvalidAnnotationConfig(f"annotation '{name}': isMarkdown must be true or false")
    style = {k: v for k, v in raw.items() if k not in _ANNOTATION_KEYS}
    return _KindSpec(name, pattern, style, rich)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnnotationRegistry:
    """One generation of annotation kinds and language descriptors."""

    kinds: Mapping[str, AnnotationKind]
    languages: tuple[LanguageDescriptor, ...]
    annotation_matcher: AnnotationMatcher
    generation: int = 1
    _state: dict[str, bool] = field(
        default_factory=lambda: {"released": False}, repr=False, compare=False
    )

    @property
    def released(self) -> bool:
        """True once this generation's style handles have been disposed."""
        return self._state["released"]

    def languages_for(self, language_tag: str) -> list[LanguageDescriptor]:
        """Every descriptor whose identifiers include *language_tag*."""
        return [lang for lang in self.languages if lang.matches(language_tag)]

    def kind(self, name: str) -> AnnotationKind:
        return self.kinds[name]

    def __len__(self) -> int:
        return len(self.kinds)


def rebuild(
    annotation_configs: Sequence[Any] | None,
    language_configs: Sequence[Any] | None,
    sink: RenderSink | None = None,
    previous: AnnotationRegistry | None = None,
) -> AnnotationRegistry:
    """Build a new registry generation from configuration.

    Everything that can fail (names, duplicates, regex compilation) is
    checked before any style handle is allocated, so a rejected rebuild
    leaves *previous* and the sink untouched.  On success the previous
    generation's style handles are released.

    Raises:
        ConfigMissing: either section is ``None``.  An empty list is fine.
        InvalidAnnotationName, DuplicateAnnotationName, InvalidAnnotationConfig,
        MalformedPattern, GrammarError: the configuration was rejected.
    """
    if annotation_configs is None:
        raise ConfigMissing("annotations")
    if language_configs is None:
        raise ConfigMissing("languages")

    specs: dict[str, _KindSpec] = {}
    for raw in annotation_configs:
        spec = _parse_annotation(raw)
        if spec.name in specs:
            raise DuplicateAnnotationName(spec.name)
        specs[spec.name] = spec

    matcher = compile_annotation_matcher({name: s.pattern for name, s in specs.items()})

    languages = []
    for raw in language_configs:
        if isinstance(raw, LanguageDescriptor):
            # Never share compiled state with another generation.
            descriptor = dataclasses.replace(raw, comment_matcher=None, annotation_matcher=None)
        else:
            descriptor = LanguageDescriptor.from_config(raw)
        languages.append(compile_language(descriptor, matcher))

    kinds: dict[str, AnnotationKind] = {}
    handles = _allocate_styles(specs, sink)
    for name, spec in specs.items():
        kinds[name] = AnnotationKind(
            name=name,
            pattern=spec.pattern,
            render_style=MappingProxyType(spec.render_style),
            is_rich_content=spec.is_rich_content,
            style=handles.get(name),
        )

    if previous is not None and sink is not None:
        release(previous, sink)

    return AnnotationRegistry(
        kinds=MappingProxyType(kinds),
        languages=tuple(languages),
        annotation_matcher=matcher,
        generation=previous.generation + 1 if previous is not None else 1,
    )


def _allocate_styles(
    specs: Mapping[str, _KindSpec], sink: RenderSink | None
) -> dict[str, StyleHandle]:
    """Create one style per kind; on failure dispose the ones already created."""
    handles: dict[str, StyleHandle] = {}
    if sink is None:
        return handles
    try:
        for name, spec in specs.items():
            handles[name] = sink.create_style(name, spec.render_style)
    except Exception:
        for handle in handles.values():
            sink.dispose_style(handle)
        raise
    return handles


def release(registry: AnnotationRegistry, sink: RenderSink) -> None:
    """Dispose every style handle allocated for *registry*.  Idempotent."""
    if registry.released:
        return
    for kind in registry.kinds.values():
        if kind.style is not None:
            sink.dispose_style(kind.style)
    registry._state["released"] = True
