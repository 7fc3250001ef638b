"""
Game basics: board representation, serialization, rules, winner/draw checks,
and move application for both variants.

Notes:
- A board is a list of 9 cells: None=empty, "X" or "O". X always starts.
- In the limited variant each mark keeps at most 3 live pieces; placing a
  4th evicts that mark's oldest piece (its history is oldest-first).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

Board = List[Optional[str]]

X = "X"
O = "O"
MARKS = (X, O)
EMPTY_CHAR = "-"

CLASSIC = "classic"
LIMITED = "limited"
VARIANTS = (CLASSIC, LIMITED)

MAX_PIECES = 3
NO_MOVE = -1

CENTER = 4
CORNERS = [0, 2, 6, 8]
SIDES = [1, 3, 5, 7]

# rows, columns, diagonals
WIN_PATTERNS = [
    [0, 1, 2], [3, 4, 5], [6, 7, 8],
    [0, 3, 6], [1, 4, 7], [2, 5, 8],
    [0, 4, 8], [2, 4, 6],
]


class IllegalMoveError(ValueError):
    """Raised by the game driver when a move cannot be played."""


def opponent_of(mark: str) -> str:
    if mark == X:
        return O
    if mark == O:
        return X
    raise ValueError(f"Unknown mark: {mark!r}")


def check_variant(variant: str) -> str:
    if variant not in VARIANTS:
        raise ValueError(f"Unknown variant: {variant!r}")
    return variant


def serialize_board(board: Sequence[Optional[str]]) -> str:
    return ''.join(EMPTY_CHAR if cell is None else cell for cell in board)


def deserialize_board(board_str: str) -> Board:
    if len(board_str) != 9 or any(c not in "XO-" for c in board_str):
        raise ValueError(f"Invalid board string {board_str!r}: need 9 chars of X/O/-")
    return [None if c == EMPTY_CHAR else c for c in board_str]


def empty_cells(board: Sequence[Optional[str]]) -> List[int]:
    return [i for i, v in enumerate(board) if v is None]


def winning_line(board: Sequence[Optional[str]]) -> Optional[List[int]]:
    for pattern in WIN_PATTERNS:
        a, b, c = pattern
        v = board[a]
        if v is not None and v == board[b] and v == board[c]:
            return pattern
    return None


def get_winner(board: Sequence[Optional[str]]) -> Optional[str]:
    line = winning_line(board)
    return board[line[0]] if line else None


def is_draw(board: Sequence[Optional[str]], variant: str = CLASSIC) -> bool:
    # the limited variant never fills the board, so it cannot draw this way
    if variant == LIMITED:
        return False
    return None not in board and get_winner(board) is None


def get_piece_counts(board: Sequence[Optional[str]]) -> Tuple[int, int]:
    return board.count(X), board.count(O)


def current_player(board: Sequence[Optional[str]]) -> str:
    x, o = get_piece_counts(board)
    return X if x == o else O


def next_eviction(history: Sequence[int]) -> Optional[int]:
    """Cell that disappears on the owner's next placement, if any."""
    return history[0] if len(history) >= MAX_PIECES else None


def apply_move(
    board: Sequence[Optional[str]],
    index: int,
    mark: str,
    history: Sequence[int] = (),
    variant: str = CLASSIC,
) -> Tuple[Board, List[int]]:
    """Place `mark` at `index`, returning the new board and the mover's new history.

    Inputs are never mutated. In the limited variant a mover with 3 live
    pieces loses its oldest one first.
    """
    new_board = list(board)
    new_history = list(history)
    if variant == LIMITED and len(new_history) >= MAX_PIECES:
        new_board[new_history[0]] = None
        new_history = new_history[1:]
    new_board[index] = mark
    new_history.append(index)
    return new_board, new_history


@dataclass
class GameState:
    """Single game driver: tracks the board, piece histories, turn and result."""

    variant: str = CLASSIC
    board: Board = field(default_factory=lambda: [None] * 9)
    histories: Dict[str, List[int]] = field(default_factory=lambda: {X: [], O: []})
    to_move: str = X
    winner: Optional[str] = None
    line: Optional[List[int]] = None
    plies: int = 0
    drawn: bool = False

    def __post_init__(self) -> None:
        check_variant(self.variant)

    @property
    def is_over(self) -> bool:
        return self.winner is not None or self.drawn

    def history_of(self, mark: str) -> List[int]:
        return list(self.histories[mark])

    def pending_eviction(self) -> Optional[int]:
        if self.is_over or self.variant != LIMITED:
            return None
        return next_eviction(self.histories[self.to_move])

    def play(self, index: int) -> Board:
        """Play `index` for the side to move and return the board before the move."""
        if self.is_over:
            raise IllegalMoveError("Game is already over")
        if not isinstance(index, int) or not 0 <= index <= 8:
            raise IllegalMoveError(f"Move out of range: {index!r}")
        if self.board[index] is not None:
            raise IllegalMoveError(f"Cell {index} is occupied")
        before = list(self.board)
        mark = self.to_move
        self.board, self.histories[mark] = apply_move(
            self.board, index, mark, self.histories[mark], self.variant
        )
        self.plies += 1
        self.line = winning_line(self.board)
        if self.line is not None:
            self.winner = mark
        elif is_draw(self.board, self.variant):
            self.drawn = True
        else:
            self.to_move = opponent_of(mark)
        return before
