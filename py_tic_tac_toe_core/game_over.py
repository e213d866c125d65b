import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal, TypeAlias

from py_tic_tac_toe_core.board import CELL_COUNT, MIN_PLAYS_FOR_WIN, Mark, get_board, get_mark, validate_moves
from py_tic_tac_toe_core.event_bus.event_bus import EventBus, GameOver, SquareClicked
from py_tic_tac_toe_core.exception import InconsistentWinError
from py_tic_tac_toe_core.wins import get_wins

logger = logging.getLogger(__name__)

Outcome: TypeAlias = Literal["undetermined", "won", "drawn"]

# Two lines through the last cell is the most a single move can complete.
MAX_SIMULTANEOUS_WINS = 2


@dataclass(frozen=True)
class GameConclusion:
    outcome: Outcome
    squares: tuple[int, ...] = ()
    player: Mark | None = None

    @classmethod
    def undetermined(cls) -> "GameConclusion":  # noqa: D102
        return cls("undetermined")

    @classmethod
    def won(cls, squares: Sequence[int], player: Mark) -> "GameConclusion":  # noqa: D102
        return cls("won", tuple(squares), player)

    @classmethod
    def drawn(cls) -> "GameConclusion":  # noqa: D102
        return cls("drawn")

    @property
    def is_over(self) -> bool:  # noqa: D102
        return self.outcome != "undetermined"

    def to_event(self) -> GameOver:
        """Build the GameOver event announcing this conclusion."""
        if not self.is_over:
            raise ValueError("An undetermined game has no GameOver event")
        return GameOver(squares=self.squares, player=self.player)


def evaluate(moves: Sequence[int]) -> GameConclusion:
    """Derive the state of the game from its move log.

    A win is reported as soon as any winning pattern is complete. A full
    board without one is a draw. Anything else is still undetermined.
    """
    moves = validate_moves(moves)
    plays = len(moves)

    if plays < MIN_PLAYS_FOR_WIN:
        return GameConclusion.undetermined()

    board = get_board(moves)
    wins = get_wins(board)

    if wins:
        if len(wins) > MAX_SIMULTANEOUS_WINS:
            msg = f"{len(wins)} winning patterns on one board: {wins}"
            raise InconsistentWinError(msg)

        squares = list(dict.fromkeys(cell for pattern in wins for cell in pattern))
        player = board[squares[0]]
        if player is None or any(board[cell] != player for cell in squares):
            first_ply = _first_win_ply(moves)
            first = get_mark(first_ply)
            second = "O" if first == "X" else "X"
            msg = (
                f"{second} completed a line after {first} had already won at ply {first_ply}; "
                f"winning squares {squares} do not share one mark"
            )
            raise InconsistentWinError(msg)
        return GameConclusion.won(squares, player)

    if plays == CELL_COUNT:
        return GameConclusion.drawn()

    return GameConclusion.undetermined()


def _first_win_ply(moves: tuple[int, ...]) -> int:
    """Index of the ply that first completed a line in `moves`."""
    for plays in range(MIN_PLAYS_FOR_WIN, len(moves) + 1):
        if get_wins(get_board(moves[:plays])):
            return plays - 1
    raise ValueError("No line is complete in this move log")


class CheckForWin:
    """Watches SquareClicked events and publishes GameOver when the game ends.

    The rule runs synchronously inside the bus delivery of each click, so the
    conclusion is published before the next move can be dispatched.
    """

    def __init__(self, event_bus: EventBus, get_moves: Callable[[], Sequence[int]]) -> None:
        self._event_bus = event_bus
        self._get_moves = get_moves
        self._event_bus.subscribe(SquareClicked, self._on_square_clicked)

    def _on_square_clicked(self, _event: SquareClicked) -> None:
        moves = self._get_moves()
        conclusion = evaluate(moves)
        logger.debug("Evaluated %d plays: %s", len(moves), conclusion.outcome)
        if not conclusion.is_over:
            return

        logger.info("Game over: %s %s %s", conclusion.outcome, conclusion.player or "", conclusion.squares)
        self._event_bus.publish(conclusion.to_event())

    def close(self) -> None:  # noqa: D102
        self._event_bus.unsubscribe(SquareClicked, self._on_square_clicked)
