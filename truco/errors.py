"""Domain errors raised by the engine and the room manager."""

from __future__ import annotations


class GameError(Exception):
    """Base class for every rule or session violation."""

    code = "GAME_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class UnauthorizedError(GameError):
    """Raised when an intent arrives without an authenticated actor."""

    code = "UNAUTHORIZED"


class NotFoundError(GameError):
    """Raised when a room, game or call does not exist."""

    code = "NOT_FOUND"


class InvalidStateError(GameError):
    """Raised when the action does not fit the current phase or status."""

    code = "INVALID_STATE"


class TrickError(InvalidStateError):
    """Raised when a trick is resolved or extended out of order."""

    code = "INVALID_TRICK"


class IllegalMoveError(GameError):
    """Raised when a player attempts a move the rules forbid."""

    code = "ILLEGAL_MOVE"


class InvalidActor(IllegalMoveError):
    """Raised when the acting player is not allowed to take this action."""

    code = "INVALID_ACTOR"


class IllegalCall(IllegalMoveError):
    """Raised when a call cannot be made with the current hand or stake."""

    code = "ILLEGAL_CALL"


class ConfigurationError(GameError):
    """Raised when a game is set up with the wrong players or deck."""

    code = "CONFIGURATION_ERROR"
