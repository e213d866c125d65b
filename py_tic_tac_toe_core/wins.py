from typing import Final, TypeAlias

from py_tic_tac_toe_core.board import CELL_COUNT, Board

Pattern: TypeAlias = tuple[int, int, int]

WINNING_PATTERNS: Final[tuple[Pattern, ...]] = (
    # Rows
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    # Columns
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    # Diagonals
    (0, 4, 8),
    (2, 4, 6),
)


def get_wins(board: Board) -> list[Pattern]:
    """Return every winning pattern completed on `board`, in declaration order."""
    if len(board) != CELL_COUNT:
        msg = f"Board must have {CELL_COUNT} cells, got {len(board)}"
        raise ValueError(msg)

    return [
        (a, b, c)
        for a, b, c in WINNING_PATTERNS
        if board[a] is not None and board[a] == board[b] and board[b] == board[c]
    ]
