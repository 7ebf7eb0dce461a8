"""Exception types raised by Callshift."""

from __future__ import annotations


class CallshiftError(Exception):
    """Base class for errors surfaced to callers of the rewrite engine."""


class ConfigError(CallshiftError):
    """Rewrite configuration is missing or malformed."""


class NeverThrown(RuntimeError):
    """Sentinel exception for code paths that must be unreachable.

    Raised by :func:`callshift.invariants.never`. Reaching one means an
    internal invariant was violated, not that the input was bad.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})


class ImportConflict(CallshiftError):
    """The replacement name is already bound by an import from another module."""
