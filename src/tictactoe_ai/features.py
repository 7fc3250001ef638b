"""
Positional features and control scores.

The limited-variant evaluation combines line control, center/corner
occupancy and the swing in control caused by each side's impending eviction.
"""
from typing import Dict, List, Optional, Sequence

from .game_basics import CENTER, CORNERS, MAX_PIECES, WIN_PATTERNS

LINE_CONTROL_WEIGHT = 10
NEAR_WIN_BONUS = 30
CENTER_BONUS = 15
CORNER_BONUS = 5


def line_counts(board: Sequence[Optional[str]], pattern: List[int], mark: str, other: str) -> Dict[str, int]:
    cells = [board[i] for i in pattern]
    return {
        'own': cells.count(mark),
        'other': cells.count(other),
        'empty': cells.count(None),
    }


def evaluate_control_score(board: Sequence[Optional[str]], ai_mark: str, opp_mark: str) -> int:
    """Line, center and corner control from `ai_mark`'s point of view."""
    score = 0
    for pattern in WIN_PATTERNS:
        c = line_counts(board, pattern, ai_mark, opp_mark)
        if c['own'] > 0 and c['other'] == 0:
            score += LINE_CONTROL_WEIGHT * c['own']
        if c['other'] > 0 and c['own'] == 0:
            score -= LINE_CONTROL_WEIGHT * c['other']
        if c['own'] == 2 and c['empty'] == 1:
            score += NEAR_WIN_BONUS
        if c['other'] == 2 and c['empty'] == 1:
            score -= NEAR_WIN_BONUS

    if board[CENTER] == ai_mark:
        score += CENTER_BONUS
    elif board[CENTER] == opp_mark:
        score -= CENTER_BONUS

    for corner in CORNERS:
        if board[corner] == ai_mark:
            score += CORNER_BONUS
        elif board[corner] == opp_mark:
            score -= CORNER_BONUS
    return score


def removal_impact(
    board: Sequence[Optional[str]], removed: int, losing_mark: str, gaining_mark: str
) -> int:
    """Change in `gaining_mark`'s control if the piece at `removed` disappears."""
    after = list(board)
    after[removed] = None
    return (evaluate_control_score(after, gaining_mark, losing_mark)
            - evaluate_control_score(board, gaining_mark, losing_mark))


def evaluate_limited_position(
    board: Sequence[Optional[str]],
    ai_mark: str,
    opp_mark: str,
    ai_history: Sequence[int],
    opp_history: Sequence[int],
    max_pieces: int = MAX_PIECES,
) -> int:
    score = evaluate_control_score(board, ai_mark, opp_mark)
    if len(ai_history) >= max_pieces:
        # our oldest piece is about to go
        score -= removal_impact(board, ai_history[0], ai_mark, opp_mark)
    if len(opp_history) >= max_pieces:
        score += removal_impact(board, opp_history[0], opp_mark, ai_mark)
    return score


def corner_opportunity_score(board: Sequence[Optional[str]], corner: int, mark: str) -> int:
    """Open lines kept for `mark` after taking `corner`; +3 per line already holding two."""
    b = list(board)
    b[corner] = mark
    score = 0
    for pattern in WIN_PATTERNS:
        cells = [b[i] for i in pattern]
        if all(v == mark or v is None for v in cells):
            score += 1
            if cells.count(mark) >= 2:
                score += 3
    return score


def opponent_opportunity_score(board: Sequence[Optional[str]], move: int, mark: str, opp_mark: str) -> int:
    """Lines still open to `opp_mark` after `mark` plays `move`; +5 per live two-in-line threat."""
    b = list(board)
    b[move] = mark
    score = 0
    for pattern in WIN_PATTERNS:
        cells = [b[i] for i in pattern]
        if all(v == opp_mark or v is None for v in cells):
            score += 1
            if cells.count(opp_mark) >= 2:
                score += 5
    return score
