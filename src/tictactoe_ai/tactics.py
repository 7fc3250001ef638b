"""
Tactics and simple motifs: immediate wins/blocks, forks, move categories.

All functions are pure; boards passed in are never modified.
"""
from typing import Dict, List, Optional, Sequence

from .game_basics import CENTER, CORNERS, SIDES, WIN_PATTERNS, next_eviction, opponent_of

SCORES: Dict[str, int] = {
    'WIN': 100,
    'BLOCK_WIN': 90,
    'FORK': 80,
    'BLOCK_FORK': 70,
    'CENTER': 60,
    'CORNER': 50,
    'SIDE': 40,
    'SETUP': 30,
    'NEUTRAL': 0,
}


def _open_two(board: Sequence[Optional[str]], pattern: List[int], mark: str) -> Optional[int]:
    """Empty cell of `pattern` when it holds exactly two `mark` and one empty."""
    owned = 0
    empty = None
    for i in pattern:
        v = board[i]
        if v == mark:
            owned += 1
        elif v is None:
            if empty is not None:
                return None
            empty = i
    return empty if owned == 2 else None


def count_open_twos(board: Sequence[Optional[str]], mark: str) -> int:
    return sum(1 for pat in WIN_PATTERNS if _open_two(board, pat, mark) is not None)


def winning_move(board: Sequence[Optional[str]], mark: str) -> Optional[int]:
    for pattern in WIN_PATTERNS:
        cell = _open_two(board, pattern, mark)
        if cell is not None:
            return cell
    return None


def immediate_winning_moves(board: Sequence[Optional[str]], mark: str) -> List[int]:
    wins = {cell for cell in (_open_two(board, pat, mark) for pat in WIN_PATTERNS) if cell is not None}
    return sorted(wins)


def fork_moves(board: Sequence[Optional[str]], mark: str) -> List[int]:
    forks: List[int] = []
    for i, v in enumerate(board):
        if v is not None:
            continue
        b = list(board)
        b[i] = mark
        if count_open_twos(b, mark) >= 2:
            forks.append(i)
    return forks


def fork_move(board: Sequence[Optional[str]], mark: str) -> Optional[int]:
    forks = fork_moves(board, mark)
    return forks[0] if forks else None


def limited_winning_move(
    board: Sequence[Optional[str]], mark: str, history: Sequence[int]
) -> Optional[int]:
    """Immediate win for `mark` once its own oldest piece has been evicted.

    The evicted cell is never returned: a piece cannot be placed where the
    mover's departing piece stands.
    """
    evicted = next_eviction(history)
    if evicted is None:
        return winning_move(board, mark)
    b = list(board)
    b[evicted] = None
    for pattern in WIN_PATTERNS:
        cell = _open_two(b, pattern, mark)
        if cell is not None and cell != evicted:
            return cell
    return None


def classify_move(board: Sequence[Optional[str]], index: int, mark: str) -> str:
    """Strongest SCORES category that playing `index` falls under."""
    if board[index] is not None:
        raise ValueError(f"Cell {index} is occupied")
    opp = opponent_of(mark)
    labels = ['NEUTRAL']
    if index in immediate_winning_moves(board, mark):
        labels.append('WIN')
    if index in immediate_winning_moves(board, opp):
        labels.append('BLOCK_WIN')
    if index in fork_moves(board, mark):
        labels.append('FORK')
    if index in fork_moves(board, opp):
        labels.append('BLOCK_FORK')
    if index == CENTER:
        labels.append('CENTER')
    elif index in CORNERS:
        labels.append('CORNER')
    elif index in SIDES:
        labels.append('SIDE')
    b = list(board)
    b[index] = mark
    if count_open_twos(b, mark) > count_open_twos(board, mark):
        labels.append('SETUP')
    return max(labels, key=lambda k: SCORES[k])
