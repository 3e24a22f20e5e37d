"""
Game basics: board representation, serialization, rules, winner/draw checks, validity.
Notes:
- A board is a tuple of 9 cells: 0=empty, 1=X, 2=O. Boards are never mutated;
  apply_move returns a new tuple.
- X is MarkA. In multiplayer and in the reachable-state helpers X always starts;
  a local game may let O start, in which case the counts are mirrored.
- A "ply" is a half-move (one player's turn).
"""
from __future__ import annotations

from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple

from .errors import InvalidBoard, InvalidMove

Board = Tuple[int, ...]

EMPTY = 0
BOARD_SIZE = 9

WIN_PATTERNS = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class Mark(IntEnum):
    X = 1
    O = 2

    @property
    def opponent(self) -> "Mark":
        return Mark.O if self is Mark.X else Mark.X

    @classmethod
    def parse(cls, raw: str) -> "Mark":
        try:
            return cls[raw.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown mark: {raw!r}") from None


class Outcome(Enum):
    IN_PROGRESS = "in_progress"
    X_WINS = "x_wins"
    O_WINS = "o_wins"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self is not Outcome.IN_PROGRESS

    @property
    def winner(self) -> Optional[Mark]:
        if self is Outcome.X_WINS:
            return Mark.X
        if self is Outcome.O_WINS:
            return Mark.O
        return None


def empty_board() -> Board:
    return (EMPTY,) * BOARD_SIZE


def serialize_board(board: Sequence[int]) -> str:
    return ''.join(str(int(cell)) for cell in board)


def deserialize_board(board_str: str) -> Board:
    return tuple(int(cell) for cell in board_str)


def get_winner(board: Sequence[int]) -> int:
    for a, b, c in WIN_PATTERNS:
        v = board[a]
        if v != EMPTY and v == board[b] and v == board[c]:
            return v
    return EMPTY


def is_draw(board: Sequence[int]) -> bool:
    return EMPTY not in board and get_winner(board) == EMPTY


def evaluate(board: Sequence[int]) -> Outcome:
    w = get_winner(board)
    if w == Mark.X:
        return Outcome.X_WINS
    if w == Mark.O:
        return Outcome.O_WINS
    if EMPTY not in board:
        return Outcome.DRAW
    return Outcome.IN_PROGRESS


def legal_moves(board: Sequence[int]) -> List[int]:
    return [i for i, v in enumerate(board) if v == EMPTY]


def apply_move(board: Sequence[int], index: int, mark: Mark) -> Board:
    """Return a new board with `mark` placed at `index`.

    Raises InvalidMove when the index is outside the 9 cells or the cell is taken.
    The input board is left untouched.
    """
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < BOARD_SIZE:
        raise InvalidMove(index, "index out of range")
    if board[index] != EMPTY:
        raise InvalidMove(index, "cell occupied")
    lst = list(board)
    lst[index] = int(mark)
    return tuple(lst)


def get_piece_counts(board: Sequence[int]) -> Tuple[int, int]:
    return list(board).count(Mark.X), list(board).count(Mark.O)


def is_valid_state(board: Sequence[int]) -> bool:
    """True when the board is reachable from the empty board with X moving first."""
    x_count, o_count = get_piece_counts(board)
    if not (x_count == o_count or x_count == o_count + 1):
        return False
    w = get_winner(board)
    if w == Mark.X and x_count != o_count + 1:
        return False
    if w == Mark.O and x_count != o_count:
        return False
    # no double winners
    def count_wins(p: int) -> int:
        return sum(1 for pat in WIN_PATTERNS if all(board[i] == p for i in pat))
    if count_wins(Mark.X) > 0 and count_wins(Mark.O) > 0:
        return False
    return True


def current_player(board: Sequence[int]) -> Mark:
    x, o = get_piece_counts(board)
    return Mark.X if x == o else Mark.O


def parse_board(raw: str) -> Board:
    raw = (raw or "").strip()
    if len(raw) != BOARD_SIZE or any(c not in "012" for c in raw):
        raise InvalidBoard("Invalid board string. Must be 9 chars of 0/1/2.")
    board = deserialize_board(raw)
    if not is_valid_state(board):
        raise InvalidBoard("Board is not a valid reachable state.")
    return board


def render_board(board: Sequence[int]) -> str:
    symbols = {EMPTY: None, Mark.X: "X", Mark.O: "O"}
    rows = []
    for r in range(3):
        cells = []
        for c in range(3):
            i = r * 3 + c
            cells.append(symbols[board[i]] or str(i))
        rows.append(" " + " | ".join(cells))
    return "\n---+---+---\n".join(rows)
