"""Exception hierarchy for SmartBase.

Validation failures are never raised (see ``Attribute.set``); the classes
below cover the few conditions that are fatal for the calling operation.
Each one also derives from the built-in exception the condition would raise
without SmartBase, so callers can catch either.
"""

from __future__ import annotations

__all__ = ["SmartBaseError", "UnknownMethodError", "PluginError"]


class SmartBaseError(Exception):
    """Root of every SmartBase-specific error."""


class UnknownMethodError(SmartBaseError, AttributeError):
    """Advice targets a method the instance does not have."""

    def __init__(self, owner: object, names: list[str]):
        self.owner = owner
        self.names = list(names)
        joined = ", ".join(repr(name) for name in self.names)
        super().__init__(f"{type(owner).__name__} has no method(s) {joined} to advise")


class PluginError(SmartBaseError, ValueError):
    """Plugin lookup or registration failure."""
