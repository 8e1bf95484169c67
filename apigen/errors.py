"""Exceptions raised by the generator.

Only failures that abort a run live here. Unresolvable schema pointers,
``$ref`` parameters, unsupported methods and non-200/201 responses degrade
silently and never raise.
"""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for fatal generator errors."""


class LoaderError(GeneratorError):
    """A schema document could not be read, parsed or bundled."""


class SchemaCycleError(GeneratorError):
    """An inline schema contains itself without going through a ``$ref``."""

    def __init__(self, name: str) -> None:
        super().__init__(f"inline schema cycle detected while synthesizing {name!r}")
        self.name = name
