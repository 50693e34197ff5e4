"""
Pydantic models that cross the registry boundary.

Move results form a tagged union discriminated by ``outcome`` so callers can
match every case instead of parsing messages. SessionView is the read-only
snapshot handed to the rendering layer.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from arcade.logic.enums import Mark, MoveOutcome, SessionPhase


class _MoveResultBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: str
    position: int  # 1-indexed, as submitted
    board: tuple[Mark, ...]


class WonResult(_MoveResultBase):
    """The move completed a line; the mover won."""

    outcome: Literal[MoveOutcome.WON] = MoveOutcome.WON
    phase: Literal[SessionPhase.FINISHED] = SessionPhase.FINISHED
    winner_id: str
    winning_line: tuple[int, int, int]  # 0-indexed cells


class DrawResult(_MoveResultBase):
    """The move filled the board without completing a line."""

    outcome: Literal[MoveOutcome.DRAW] = MoveOutcome.DRAW
    phase: Literal[SessionPhase.FINISHED] = SessionPhase.FINISHED


class ContinueResult(_MoveResultBase):
    """The game goes on; the turn passed to the other player."""

    outcome: Literal[MoveOutcome.CONTINUE] = MoveOutcome.CONTINUE
    phase: Literal[SessionPhase.PLAYING] = SessionPhase.PLAYING
    next_player_id: str


MoveResult = Annotated[WonResult | DrawResult | ContinueResult, Field(discriminator="outcome")]


class SessionView(BaseModel):
    """Immutable snapshot of one session for rendering."""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    creator_id: str
    player1_id: str
    player2_id: str | None
    board: tuple[Mark, ...]
    phase: SessionPhase
    current_player_id: str | None
    winner_id: str | None
    created_at: float
    last_move_at: float

    @property
    def players(self) -> tuple[str, ...]:
        return tuple(p for p in (self.player1_id, self.player2_id) if p is not None)


class RegistryStats(BaseModel):
    """Session counts for status reporting."""

    total: int
    waiting: int
    playing: int
    finished: int
