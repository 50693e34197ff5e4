"""
String enum definitions for session and board concepts.
"""

from enum import StrEnum


class SessionPhase(StrEnum):
    """State-machine position of a session. Transitions only move forward."""

    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class Mark(StrEnum):
    """Contents of a single board cell."""

    EMPTY = "-"
    X = "X"  # creator (player 1)
    O = "O"  # noqa: E741  # joiner (player 2)


class MoveOutcome(StrEnum):
    """Discriminator for move results."""

    WON = "won"
    DRAW = "draw"
    CONTINUE = "continue"


class ErrorKind(StrEnum):
    """Category of a rejected session operation."""

    VALIDATION = "validation"
    STATE = "state"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
