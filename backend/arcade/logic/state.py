"""
Session state for a two-player tic-tac-toe game.

GameSession is a mutable record guarded by the registry's per-session lock.
It knows nothing about storage or concurrency. Every method either completes
its mutation or raises before touching any field.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from arcade.logic.board import find_winning_line, is_full, is_valid_move, new_board, to_index
from arcade.logic.enums import Mark, SessionPhase
from arcade.logic.exceptions import SessionConflictError, SessionStateError, SessionValidationError
from arcade.logic.types import ContinueResult, DrawResult, MoveResult, SessionView, WonResult


@dataclass(frozen=True)
class SessionKey:
    """
    Composite identity of a session: the channel it lives in and its creator.

    Compared and hashed by value, so identifiers containing any separator
    character cannot collide.
    """

    channel_id: str
    creator_id: str

    def __str__(self) -> str:
        return f"{self.channel_id}/{self.creator_id}"


def require_id(value: str, name: str) -> str:
    """Reject empty identifiers. Format is otherwise opaque."""
    if not isinstance(value, str) or not value:
        raise SessionValidationError(f"{name} must be a non-empty string")
    return value


@dataclass
class GameSession:
    """
    One game's full state: board, players, turn, and phase.

    Lifecycle:
    - Created in WAITING with only the creator seated
    - join() seats the second player and moves to PLAYING; the creator moves first
    - move() alternates turns until a line is completed or the board fills,
      then the session is FINISHED and accepts no further mutation
    """

    key: SessionKey
    created_at: float
    last_move_at: float | None = None
    player2_id: str | None = None
    board: list[Mark] = field(default_factory=new_board)
    phase: SessionPhase = SessionPhase.WAITING
    current_player_id: str | None = None  # defined iff phase is PLAYING
    winner_id: str | None = None  # None on a draw

    def __post_init__(self) -> None:
        if self.last_move_at is None:
            self.last_move_at = self.created_at

    @property
    def player1_id(self) -> str:
        return self.key.creator_id

    @property
    def channel_id(self) -> str:
        return self.key.channel_id

    @property
    def players(self) -> tuple[str, ...]:
        return tuple(p for p in (self.player1_id, self.player2_id) if p is not None)

    @property
    def is_finished(self) -> bool:
        return self.phase == SessionPhase.FINISHED

    def is_participant(self, player_id: str) -> bool:
        return player_id in self.players

    def symbol_for(self, player_id: str) -> Mark:
        if player_id == self.player1_id:
            return Mark.X
        if player_id == self.player2_id:
            return Mark.O
        raise SessionStateError("player is not part of this game")

    def other_player(self, player_id: str) -> str:
        if self.player2_id is None:
            raise SessionStateError("game has no second player yet")
        return self.player2_id if player_id == self.player1_id else self.player1_id

    def join(self, player_id: str) -> None:
        """Seat the second player and start the game."""
        require_id(player_id, "player_id")
        if self.phase != SessionPhase.WAITING:
            raise SessionStateError("game is already in progress or finished")
        if player_id == self.player1_id:
            raise SessionConflictError("you cannot play against yourself")

        self.player2_id = player_id
        self.phase = SessionPhase.PLAYING
        self.current_player_id = self.player1_id

    def move(self, player_id: str, position: int, now: float) -> MoveResult:
        """
        Apply a move at a 1-indexed position.

        Checks run in a fixed order: phase, then turn, then position. A move
        by anyone but the current player is always a state error, even if
        the position is also invalid.
        """
        if self.phase != SessionPhase.PLAYING:
            raise SessionStateError("game is not in progress")
        if player_id != self.current_player_id:
            raise SessionStateError("not your turn")
        index = to_index(position)
        if not is_valid_move(self.board, position):
            raise SessionValidationError(f"position {position} is already taken")

        self.board[index] = self.symbol_for(player_id)
        self.last_move_at = now
        board = tuple(self.board)

        line = find_winning_line(self.board)
        if line is not None:
            self._finish(winner_id=player_id)
            return WonResult(
                player_id=player_id,
                position=position,
                board=board,
                winner_id=player_id,
                winning_line=line,
            )

        if is_full(self.board):
            self._finish(winner_id=None)
            return DrawResult(player_id=player_id, position=position, board=board)

        self.current_player_id = self.other_player(player_id)
        return ContinueResult(
            player_id=player_id,
            position=position,
            board=board,
            next_player_id=self.current_player_id,
        )

    def is_expired(self, now: float, timeout: float) -> bool:
        """Check idle time since the last move, regardless of phase."""
        return now - self.last_move_at > timeout

    def snapshot(self) -> SessionView:
        return SessionView(
            channel_id=self.channel_id,
            creator_id=self.key.creator_id,
            player1_id=self.player1_id,
            player2_id=self.player2_id,
            board=tuple(self.board),
            phase=self.phase,
            current_player_id=self.current_player_id,
            winner_id=self.winner_id,
            created_at=self.created_at,
            last_move_at=self.last_move_at,
        )

    def _finish(self, winner_id: str | None) -> None:
        self.phase = SessionPhase.FINISHED
        self.current_player_id = None
        self.winner_id = winner_id
