from collections.abc import Sequence
from typing import Final, Literal, TypeAlias

from py_tic_tac_toe_core.exception import DuplicateCellPlayError, InvalidCellIndexError, OversizedLogError

BOARD_SIZE: Final = 3
CELL_COUNT: Final = BOARD_SIZE * BOARD_SIZE
MIN_PLAYS_FOR_WIN: Final = 2 * BOARD_SIZE - 1

Mark: TypeAlias = Literal["X", "O"]
Board: TypeAlias = tuple[Mark | None, ...]


def validate_moves(moves: Sequence[int]) -> tuple[int, ...]:
    """Check a move log and return it as a tuple.

    Raises OversizedLogError, InvalidCellIndexError or DuplicateCellPlayError
    when the log could not have come from a legal game.
    """
    if len(moves) > CELL_COUNT:
        msg = f"Move log has {len(moves)} entries, at most {CELL_COUNT} allowed."
        raise OversizedLogError(msg)

    seen: set[int] = set()
    for ply, cell in enumerate(moves):
        if isinstance(cell, bool) or not isinstance(cell, int) or not (0 <= cell < CELL_COUNT):
            msg = f"Invalid cell {cell!r} at ply {ply}."
            raise InvalidCellIndexError(msg)
        if cell in seen:
            msg = f"Cell {cell} played twice (again at ply {ply})."
            raise DuplicateCellPlayError(msg)
        seen.add(cell)
    return tuple(moves)


def get_mark(ply: int) -> Mark:
    return "X" if ply % 2 == 0 else "O"


def get_player(cell: int, moves: Sequence[int]) -> Mark | None:
    """Mark of whoever played `cell`, or None if it is still empty."""
    try:
        ply = list(moves).index(cell)
    except ValueError:
        return None
    return get_mark(ply)


def get_board(moves: Sequence[int]) -> Board:
    moves = validate_moves(moves)
    return tuple(get_player(cell, moves) for cell in range(CELL_COUNT))


def get_available_cells(moves: Sequence[int]) -> list[int]:
    played = set(validate_moves(moves))
    return [cell for cell in range(CELL_COUNT) if cell not in played]
