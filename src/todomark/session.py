"""session.py - Registry lifecycle and event handling for a running host.

A :class:`Session` owns the one live :class:`AnnotationRegistry` and reacts
to the host's three no-payload events:

- text changed / active document changed -> rescan every visible document,
- configuration changed -> reload the registry, then rescan.

Reloads build the new registry completely before swapping the reference,
so a scan never sees a half-built generation.  Each rescan pass takes a
snapshot of the registry reference when it starts and uses only that.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable
from typing import Protocol

from todomark.config import ConfigError, TodomarkConfig, load_config
from todomark.errors import RegistryError
from todomark.registry import AnnotationRegistry, rebuild, release
from todomark.render import RenderSink
from todomark.scan import Decorations, Document, paint_document


class DocumentSource(Protocol):
    def get_visible_documents(self) -> list[Document]: ...


ConfigSource = Callable[[], TodomarkConfig]


class Session:
    """The host-side context object: init on start, swap on config change."""

    def __init__(
        self,
        workspace: DocumentSource,
        sink: RenderSink,
        config_source: ConfigSource = load_config,
    ) -> None:
        self.workspace = workspace
        self.sink = sink
        self.config_source = config_source
        self.registry: AnnotationRegistry | None = None
        self.last_error: Exception | None = None

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> AnnotationRegistry | None:
        """Load the configuration and paint every visible document."""
        return self.reload()

    def close(self) -> None:
        """Release the live registry's style handles."""
        if self.registry is not None:
            release(self.registry, self.sink)
            self.registry = None

    def reload(self) -> AnnotationRegistry | None:
        """Rebuild the registry from the current configuration, then rescan.

        Returns the active registry.  A missing section leaves the previous
        registry in place without comment; a rejected configuration leaves
        it in place with a warning.
        """
        try:
            cfg = self.config_source()
        except (ConfigError, OSError) as exc:
            self._reject(exc)
            return self.registry

        if not cfg.is_complete:
            return self.registry

        try:
            registry = rebuild(cfg.annotations, cfg.languages, self.sink, previous=self.registry)
        except RegistryError as exc:
            self._reject(exc)
            return self.registry

        self.registry = registry
        self.last_error = None
        self.rescan_all()
        return registry

    def _reject(self, exc: Exception) -> None:
        self.last_error = exc
        if self.registry is not None:
            keeping = "keeping previous configuration"
        else:
            keeping = "no annotations active"
        warnings.warn(f"todomark: configuration rejected ({exc}); {keeping}", stacklevel=3)

    # -- scanning ----------------------------------------------------------

    def rescan_all(self) -> list[tuple[Document, Decorations]]:
        """Paint every visible document with the registry active right now.

        Returns ``(document, decorations)`` pairs in workspace order.  A
        document whose scan fails is warned about and left out.
        """
        registry = self.registry
        results: list[tuple[Document, Decorations]] = []
        if registry is None:
            return results
        for document in self.workspace.get_visible_documents():
            if document is None:
                continue
            try:
                decorations = paint_document(document, registry, self.sink)
            except Exception as exc:
                warnings.warn(f"todomark: skipped {document!r}: {exc}", stacklevel=2)
                continue
            results.append((document, decorations))
        return results

    # -- host events -------------------------------------------------------

    def on_text_changed(self) -> None:
        self.rescan_all()

    def on_active_document_changed(self) -> None:
        self.rescan_all()

    def on_config_changed(self) -> None:
        self.reload()

    def __enter__(self) -> Session:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
