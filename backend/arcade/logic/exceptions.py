"""Typed domain exceptions for session operations.

Every rejected operation raises a subclass of SessionError rather than a raw
ValueError. The registry propagates them unchanged; the hosting layer maps
``kind`` to user-facing text. None of them are transient, so callers must not
retry.
"""

from arcade.logic.enums import ErrorKind


class SessionError(Exception):
    """Base exception for rejected session operations.

    Raised by the session state machine and the registry. A rejected
    operation never leaves a partial mutation behind.
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SessionValidationError(SessionError):
    """Malformed input: position outside 1-9, occupied cell, or empty identifier."""

    kind = ErrorKind.VALIDATION


class SessionStateError(SessionError):
    """Operation is not valid for the session's current phase or turn."""

    kind = ErrorKind.STATE


class SessionConflictError(SessionError):
    """Request would violate uniqueness or identity rules."""

    kind = ErrorKind.CONFLICT


class SessionNotFoundError(SessionError):
    """No session matches the given key or participant lookup."""

    kind = ErrorKind.NOT_FOUND
