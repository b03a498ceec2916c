"""
Exception hierarchy for diagbus.
"""

from __future__ import annotations


class DiagnosticsError(Exception):
    """Base class for all diagbus errors."""


class InvalidEventError(DiagnosticsError, ValueError):
    """A diagnostic event does not conform to its kind's shape."""


class UnknownEventKindError(InvalidEventError):
    """A serialized event names a kind outside the closed set."""

    def __init__(self, kind: str):
        super().__init__(f"Unknown diagnostic event kind: {kind!r}")
        self.kind = kind
