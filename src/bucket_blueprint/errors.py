"""Exceptions raised inside the blueprint core.

The validator converts every one of these into a violation, so none of them
escape ``validate()``.
"""

from __future__ import annotations


class BlueprintError(Exception):
    """Base class for blueprint configuration errors."""

    def __init__(self, scope: str, message: str) -> None:
        super().__init__(f"{scope}: {message}")
        self.scope = scope
        self.message = message


class ConfigurationMissing(BlueprintError):
    """A required configuration unit or parameter value is absent."""

    def __init__(self, scope: str, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(scope, message)
        self.missing = missing


class ParseFailure(BlueprintError):
    """A configuration unit is syntactically invalid."""


class DanglingReference(BlueprintError):
    """An expression refers to something that is not declared."""
