"""errors.py - Exceptions raised while building an annotation registry.

Every rebuild failure derives from :class:`RegistryError` so that a reload
can reject the new configuration in one ``except`` clause and keep the
previous registry active.
"""


class RegistryError(Exception):
    """Base class for registry construction failures."""


class ConfigMissing(RegistryError):
    """The ``annotations`` or ``languages`` section is absent (not just empty)."""

    def __init__(self, section: str) -> None:
        super().__init__(f"configuration section '{section}' is missing")
        self.section = section


class DuplicateAnnotationName(RegistryError):
    """Two annotation kinds share a name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"duplicate annotation name '{name}'")
        self.name = name


class InvalidAnnotationName(RegistryError):
    """An annotation name cannot be used as a regex capture-group name."""

    def __init__(self, name: object) -> None:
        super().__init__(
            f"invalid annotation name {name!r}: use ASCII letters, digits and "
            "underscores, not starting with a digit"
        )
        self.name = name


class MalformedPattern(RegistryError):
    """A regex fragment failed to compile into the combined expression."""

    def __init__(self, owner: str, fragment: str, reason: str) -> None:
        super().__init__(f"{owner}: cannot compile pattern {fragment!r}: {reason}")
        self.owner = owner
        self.fragment = fragment
        self.reason = reason


class InvalidAnnotationConfig(RegistryError):
    """An annotation entry is structurally wrong (missing pattern, bad types)."""
