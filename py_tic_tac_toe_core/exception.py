class GameError(Exception):
    pass


class LogicError(GameError):
    pass


class InconsistentWinError(LogicError):
    pass


class InvalidMoveError(GameError):
    pass


class InvalidCellIndexError(InvalidMoveError):
    pass


class DuplicateCellPlayError(InvalidMoveError):
    pass


class OversizedLogError(InvalidMoveError):
    pass


class GameOverError(InvalidMoveError):
    pass
