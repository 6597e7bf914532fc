from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .board import (
    EMPTY,
    Symbol,
    is_valid_move,
    new_board,
    winning_line,
)
from .errors import InvalidMove

# Marks on the board at which the oldest one is evicted in infinity mode
INFINITY_THRESHOLD = 6


class RuleMode(str, Enum):
    STANDARD = "standard"
    INFINITY = "infinity"


class GameState(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAW = "draw"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not GameState.IN_PROGRESS


@dataclass(frozen=True)
class Move:
    position: int
    symbol: Symbol
    turn: int
    timestamp: str = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data['symbol'] = self.symbol.value
        return data


@dataclass(frozen=True)
class MoveOutcome:
    state: GameState
    winner: Optional[Symbol] = None
    winning_line: Optional[Tuple[int, ...]] = None
    evicted: Optional[Move] = None


class MoveHistory:
    """
    Insertion-ordered moves backed by a deque.

    With a capacity the deque is bounded: pushing into a full history drops
    the head, which is returned so the caller can clear its cell.
    """

    def __init__(self, capacity: int = None):
        self.capacity = capacity
        self._moves = deque(maxlen=capacity)

    def push(self, move: Move) -> Optional[Move]:
        evicted = None
        if self.capacity is not None and len(self._moves) == self.capacity:
            evicted = self._moves[0]
        self._moves.append(move)
        return evicted

    @property
    def oldest(self) -> Optional[Move]:
        return self._moves[0] if self._moves else None

    def __len__(self) -> int:
        return len(self._moves)

    def __iter__(self):
        return iter(self._moves)

    def __getitem__(self, index: int) -> Move:
        return self._moves[index]

    def to_list(self) -> List[dict]:
        return [m.to_dict() for m in self._moves]


class StandardRules:
    mode = RuleMode.STANDARD

    def __init__(self, size: int = 3):
        self.board = new_board(size)
        self.size = size
        self.history = self._new_history()
        self.turn = 0
        self.state = GameState.IN_PROGRESS

    def _new_history(self) -> MoveHistory:
        return MoveHistory()

    def snapshot(self) -> List[int]:
        return list(self.board)

    def apply(self, position: int, symbol: Symbol, timestamp: str = None) -> MoveOutcome:
        """
        Place ``symbol`` at ``position`` and evaluate the resulting board.

        An illegal move leaves the board in ERROR; a finished board takes no
        further moves.
        """
        if self.state.is_terminal:
            raise InvalidMove(position, f"Board is already {self.state.value}")
        if not is_valid_move(self.board, position):
            self.state = GameState.ERROR
            raise InvalidMove(position, f"Cell {position} is not available")

        self.turn += 1
        move = Move(
            position=position,
            symbol=symbol,
            turn=self.turn,
            timestamp=timestamp or datetime.utcnow().isoformat() + "Z",
        )
        evicted = self._record(move)
        self.board[position] = symbol.cell
        outcome = self._evaluate(symbol, evicted)
        self.state = outcome.state
        return outcome

    def forfeit(self):
        """Close the board after a move that failed before reaching it."""
        if not self.state.is_terminal:
            self.state = GameState.ERROR

    def _record(self, move: Move) -> Optional[Move]:
        self.history.push(move)
        return None

    def _evaluate(self, symbol: Symbol, evicted: Optional[Move]) -> MoveOutcome:
        line = winning_line(self.board, symbol)
        if line is not None:
            return MoveOutcome(GameState.WON, winner=symbol, winning_line=line, evicted=evicted)
        if all(cell != EMPTY for cell in self.board):
            return MoveOutcome(GameState.DRAW, evicted=evicted)
        return MoveOutcome(GameState.IN_PROGRESS, evicted=evicted)


class InfinityRules(StandardRules):
    """
    Sliding-window variant. The history holds at most INFINITY_THRESHOLD - 1
    moves: the move that would make it reach the threshold first evicts the
    oldest mark on the board, whoever owns it.
    """

    mode = RuleMode.INFINITY

    def _new_history(self) -> MoveHistory:
        return MoveHistory(capacity=INFINITY_THRESHOLD - 1)

    def _record(self, move: Move) -> Optional[Move]:
        evicted = self.history.push(move)
        if evicted is not None:
            self.board[evicted.position] = EMPTY
        return evicted


def create_rules(mode, size: int = 3) -> StandardRules:
    mode = RuleMode(mode)
    if mode is RuleMode.INFINITY:
        return InfinityRules(size)
    return StandardRules(size)
