"""
Engine error taxonomy. All errors are local, synchronous and leave state untouched.
"""
from __future__ import annotations


class EngineError(ValueError):
    """Base class for rejected engine commands."""


class InvalidStateError(EngineError):
    """Command not valid in the current lifecycle state (no server yet, or match over)."""


class EmptyHistoryError(EngineError):
    """The current set has no points to remove."""


class NothingToUndoError(EmptyHistoryError):
    """No points in the current set and no completed set to reopen."""


class MalformedPersistedStateError(EngineError):
    """Persisted primitives are inconsistent; refuse to rehydrate."""
