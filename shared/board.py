import math
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Tuple, Union

from .errors import InvalidBoardError

EMPTY = 0
SUPPORTED_SIZES = (3, 5)


class Symbol(str, Enum):
    X = "X"
    O = "O"

    @property
    def cell(self) -> int:
        return 1 if self is Symbol.X else 2

    @property
    def opponent(self) -> "Symbol":
        return Symbol.O if self is Symbol.X else Symbol.X

    @classmethod
    def from_cell(cls, value: int) -> "Symbol":
        if value == 1:
            return cls.X
        if value == 2:
            return cls.O
        raise ValueError(f"Cell value {value} is not a player mark")


SymbolLike = Union[Symbol, str, int]


def cell_value(symbol: SymbolLike) -> int:
    """Map 'X'/'O', a Symbol or a raw cell value 1/2 to the cell value."""
    if isinstance(symbol, Symbol):
        return symbol.cell
    if isinstance(symbol, int) and not isinstance(symbol, bool):
        if symbol in (1, 2):
            return symbol
        raise ValueError(f"Unknown symbol: {symbol}")
    return Symbol(str(symbol).upper()).cell


def board_size(board) -> int:
    if not isinstance(board, (list, tuple)) or len(board) == 0:
        raise InvalidBoardError(len(board) if hasattr(board, '__len__') else None)

    size = math.isqrt(len(board))
    if size * size != len(board) or size not in SUPPORTED_SIZES:
        raise InvalidBoardError(len(board))
    return size


def parse_board_size(value) -> int:
    """Accept '3x3' / '5x5' as well as the plain integers 3 / 5."""
    if isinstance(value, str):
        parts = value.lower().split('x')
        if len(parts) == 2 and parts[0] == parts[1] and parts[0].isdigit():
            value = int(parts[0])
    if isinstance(value, int) and not isinstance(value, bool) and value in SUPPORTED_SIZES:
        return value
    raise InvalidBoardError(None)


def new_board(size: int) -> List[int]:
    if size not in SUPPORTED_SIZES:
        raise InvalidBoardError(size * size if isinstance(size, int) else None)
    return [EMPTY] * (size * size)


@lru_cache(maxsize=None)
def winning_lines(size: int) -> Tuple[Tuple[int, ...], ...]:
    """Rows, then columns, then the main diagonal, then the anti-diagonal."""
    rows = [tuple(r * size + c for c in range(size)) for r in range(size)]
    cols = [tuple(r * size + c for r in range(size)) for c in range(size)]
    main_diagonal = tuple(i * size + i for i in range(size))
    anti_diagonal = tuple(i * size + (size - 1 - i) for i in range(size))
    return tuple(rows + cols + [main_diagonal, anti_diagonal])


def winning_line(board, symbol: SymbolLike) -> Optional[Tuple[int, ...]]:
    value = cell_value(symbol)
    for line in winning_lines(board_size(board)):
        if all(board[i] == value for i in line):
            return line
    return None


def check_win(board, symbol: SymbolLike) -> bool:
    return winning_line(board, symbol) is not None


def is_draw(board) -> bool:
    if any(cell == EMPTY for cell in board):
        return False
    return not (check_win(board, Symbol.X) or check_win(board, Symbol.O))


def empty_positions(board) -> List[int]:
    return [i for i, cell in enumerate(board) if cell == EMPTY]


def occupied_positions(board, symbol: SymbolLike = None) -> List[int]:
    if symbol is None:
        return [i for i, cell in enumerate(board) if cell != EMPTY]
    value = cell_value(symbol)
    return [i for i, cell in enumerate(board) if cell == value]


def is_valid_move(board, position) -> bool:
    if not isinstance(position, int) or isinstance(position, bool):
        return False
    return 0 <= position < len(board) and board[position] == EMPTY


def board_to_string(board) -> str:
    size = board_size(board)
    marks = {EMPTY: '.', 1: 'X', 2: 'O'}
    rows = []
    for r in range(size):
        rows.append(' '.join(marks.get(board[r * size + c], '.') for c in range(size)))
    return '\n'.join(rows)
