# ruff: noqa: T201

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from py_tic_tac_toe_core.board import BOARD_SIZE, CELL_COUNT, Board, get_board, get_mark
from py_tic_tac_toe_core.event_bus.event_bus import GameOver
from py_tic_tac_toe_core.exception import InvalidMoveError
from py_tic_tac_toe_core.store import GameStore


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    store = GameStore()
    game_over: list[GameOver] = []
    store.event_bus.subscribe(GameOver, game_over.append)

    if args.moves is not None:
        status = _replay(store, args.moves)
    else:
        status = _play(store)

    if args.json and game_over:
        print(json.dumps(game_over[-1].to_dict()))
    store.close()
    return status


def _replay(store: GameStore, moves: list[int]) -> int:
    for square in moves:
        try:
            store.square_clicked(square)
        except InvalidMoveError as e:
            print(f"Move {square} rejected: {e}", file=sys.stderr)
            return 1
        print(render_board(get_board(store.state.moves)), flush=True)
    print(describe(store), flush=True)
    return 0


def _play(store: GameStore) -> int:
    print(render_board(get_board(store.state.moves)), flush=True)
    while not store.state.is_over:
        player = get_mark(len(store.state.moves))
        print(f"Player {player}'s move (1-{CELL_COUNT}): ", end="", flush=True)
        try:
            input_str = input()
        except (KeyboardInterrupt, EOFError):
            return 0

        if input_str == "exit":
            return 0

        try:
            position = int(input_str)
        except ValueError:
            print("Not an integer", flush=True)
            continue
        if not (1 <= position <= CELL_COUNT):
            print(f"Not between 1 and {CELL_COUNT}", flush=True)
            continue

        try:
            store.square_clicked(position - 1)
        except InvalidMoveError as e:
            print(str(e), flush=True)
            continue
        print(render_board(get_board(store.state.moves)), flush=True)

    print(describe(store), flush=True)
    return 0


def render_board(board: Board) -> str:
    """Draw the board with empty cells numbered 1-9."""

    def _cell_value(index: int) -> str:
        value = board[index]
        return value if value is not None else str(index + 1)

    rows = []
    for r in range(BOARD_SIZE):
        start = r * BOARD_SIZE
        row = " | ".join(_cell_value(start + i) for i in range(BOARD_SIZE))
        rows.append(f" {row} ")

    separator = "\n-----------\n"
    output = separator.join(rows)
    return f"\n{output}\n"


def describe(store: GameStore) -> str:  # noqa: D103
    conclusion = store.conclusion
    match conclusion.outcome:
        case "won":
            squares = ", ".join(str(square + 1) for square in conclusion.squares)
            return f"Winner: {conclusion.player} ({squares})"
        case "drawn":
            return "It's a draw"
        case _:
            return "Game not finished"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="py_tic_tac_toe_core")

    parser.add_argument("--moves", type=int, nargs="+", metavar="CELL", help="replay cells 0-8 in play order")
    parser.add_argument("--json", action="store_true", help="print the GameOver event as JSON")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )

    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())
