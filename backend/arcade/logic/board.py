"""
Board geometry and line evaluation for a 3x3 grid.

Positions are 1-indexed at the API boundary and 0-indexed internally.
"""

from collections.abc import Sequence

from arcade.logic.enums import Mark
from arcade.logic.exceptions import SessionValidationError

GRID_SIZE = 3
BOARD_SIZE = GRID_SIZE * GRID_SIZE
MIN_POSITION = 1
MAX_POSITION = BOARD_SIZE

WINNING_LINES: tuple[tuple[int, int, int], ...] = (
    # rows
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    # columns
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    # diagonals
    (0, 4, 8),
    (2, 4, 6),
)


def new_board() -> list[Mark]:
    return [Mark.EMPTY] * BOARD_SIZE


def to_index(position: int) -> int:
    """
    Convert a 1-indexed board position into a 0-indexed cell index.

    Raises SessionValidationError for anything outside 1..9, including bools
    and non-integers that slipped past the command layer.
    """
    if isinstance(position, bool) or not isinstance(position, int):
        raise SessionValidationError(f"position must be an integer, got {position!r}")
    if not (MIN_POSITION <= position <= MAX_POSITION):
        raise SessionValidationError(f"position must be {MIN_POSITION}-{MAX_POSITION}, got {position}")
    return position - 1


def is_valid_move(board: Sequence[Mark], position: int) -> bool:
    """Check whether a 1-indexed position is on the board and still empty."""
    try:
        index = to_index(position)
    except SessionValidationError:
        return False
    return board[index] == Mark.EMPTY


def find_winning_line(board: Sequence[Mark]) -> tuple[int, int, int] | None:
    """Return the first line whose three cells hold the same non-empty mark."""
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] != Mark.EMPTY and board[a] == board[b] == board[c]:
            return line
    return None


def is_full(board: Sequence[Mark]) -> bool:
    return Mark.EMPTY not in board

