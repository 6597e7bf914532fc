from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        return {
            ErrorKind.VALIDATION: 400,
            ErrorKind.NOT_FOUND: 404,
            ErrorKind.CONFLICT: 409,
            ErrorKind.UNAVAILABLE: 500,
            ErrorKind.INTERNAL: 500,
        }[self]


class ArbitratorError(Exception):
    """Base class for every error raised by the arbitration engine."""


class InvalidBoardError(ArbitratorError, ValueError):
    def __init__(self, length: int = None):
        self.length = length
        super().__init__(f"Invalid board size (length={length})")


class MoveError(ArbitratorError):
    """
    A failure to obtain or apply a player's move.
    Every MoveError is a forfeit for the mover; it is never retried.
    """

    reason = "move_error"

    def __init__(self, message: str, player: str = None):
        self.player = player
        super().__init__(message)


class TransportError(MoveError):
    reason = "transport"


class MoveTimeout(TransportError):
    reason = "timeout"


class UnreachableHost(TransportError):
    reason = "unreachable"


class MalformedResponse(TransportError):
    reason = "malformed_response"


class RuleViolation(MoveError):
    reason = "rule_violation"


class InvalidMove(RuleViolation):
    reason = "invalid_move"

    def __init__(self, position, message: str = None, player: str = None):
        self.position = position
        super().__init__(message or f"Invalid move: {position}", player=player)
