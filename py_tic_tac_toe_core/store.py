import logging
import threading
from dataclasses import dataclass, replace

from py_tic_tac_toe_core.board import CELL_COUNT, Mark
from py_tic_tac_toe_core.event_bus.event_bus import Event, EventBus, GameOver, MoveRejected, SquareClicked
from py_tic_tac_toe_core.exception import (
    DuplicateCellPlayError,
    GameOverError,
    InvalidCellIndexError,
    InvalidMoveError,
)
from py_tic_tac_toe_core.game_over import CheckForWin, GameConclusion, evaluate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameState:
    moves: tuple[int, ...] = ()
    winning_squares: tuple[int, ...] | None = None
    winning_player: Mark | None = None

    @property
    def is_over(self) -> bool:  # noqa: D102
        return self.winning_squares is not None


def reduce(state: GameState, event: Event) -> GameState:
    """Return the state that follows `event`. Never mutates `state`."""
    match event:
        case SquareClicked(square=None):
            return state
        case SquareClicked(square=square):
            return replace(state, moves=(*state.moves, square))
        case GameOver(squares=squares, player=player):
            return replace(state, winning_squares=squares, winning_player=player)
        case _:
            return state


def get_moves(state: GameState) -> tuple[int, ...]:  # noqa: D103
    return state.moves


def get_winning_squares(state: GameState) -> tuple[int, ...] | None:  # noqa: D103
    return state.winning_squares


def get_winning_player(state: GameState) -> Mark | None:  # noqa: D103
    return state.winning_player


class GameStore:
    """Owns the move log and feeds every accepted move to the game-over rule.

    Events enter the state only through the bus, so a click published directly
    or with publish_async() is reduced exactly like one passed to dispatch().
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._state = GameState()
        self._lock = threading.RLock()
        # Subscribed before CheckForWin so the rule sees the move it reacts to.
        self._event_bus.subscribe(SquareClicked, self._on_square_clicked)
        self._event_bus.subscribe(GameOver, self._on_game_over)
        self._check_for_win = CheckForWin(self._event_bus, lambda: get_moves(self._state))

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def conclusion(self) -> GameConclusion:
        return evaluate(self._state.moves)

    def square_clicked(self, square: int | None) -> None:  # noqa: D102
        self.dispatch(SquareClicked(square))

    def dispatch(self, event: Event) -> None:
        """Publish `event` on the bus and let the store's handlers reduce it.

        A SquareClicked that cannot be played raises an InvalidMoveError after
        a MoveRejected event has been published.
        """
        self._event_bus.publish(event)

    def close(self) -> None:  # noqa: D102
        self._check_for_win.close()
        self._event_bus.unsubscribe(GameOver, self._on_game_over)
        self._event_bus.unsubscribe(SquareClicked, self._on_square_clicked)

    def _check_move(self, square: int | None) -> None:
        if self._state.is_over:
            raise GameOverError("Game over.")
        if square is None:
            return
        if isinstance(square, bool) or not isinstance(square, int) or not (0 <= square < CELL_COUNT):
            msg = f"Square {square!r} is not between 0 and {CELL_COUNT - 1}."
            raise InvalidCellIndexError(msg)
        if square in self._state.moves:
            msg = f"Square {square} is occupied."
            raise DuplicateCellPlayError(msg)

    def _on_square_clicked(self, event: SquareClicked) -> None:
        with self._lock:
            try:
                self._check_move(event.square)
            except InvalidMoveError as e:
                logger.debug("Rejected square %r: %s", event.square, e)
                self._event_bus.publish(MoveRejected(square=event.square, error_msg=str(e)))
                raise
            self._state = reduce(self._state, event)
            logger.debug("Moves: %s", self._state.moves)

    def _on_game_over(self, event: GameOver) -> None:
        with self._lock:
            self._state = reduce(self._state, event)
