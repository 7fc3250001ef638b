"""
Exact move search for the classic variant: minimax with alpha-beta pruning and
a bounded transposition memo.

Scoring is from the AI's perspective: +(10 - depth) for an AI win,
-(10 - depth) for an opponent win, 0 for a draw, so faster wins and slower
losses are preferred. Ties go to the first cell index reaching the best score.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .game_basics import CENTER, NO_MOVE, empty_cells, get_winner, opponent_of, serialize_board
from .tactics import fork_move, winning_move

WIN_SCORE = 10
# explicit bounds instead of +/-inf; every reachable score lies strictly inside
SCORE_FLOOR = -(WIN_SCORE + 1)
SCORE_CEIL = WIN_SCORE + 1

EXACT, LOWER, UPPER = 0, 1, 2

DEFAULT_MAX_CACHE_ENTRIES = 1000


class ExactSearch:
    def __init__(self, max_cache_entries: int = DEFAULT_MAX_CACHE_ENTRIES) -> None:
        self.max_cache_entries = max_cache_entries
        self._cache: Dict[Tuple[str, bool, int, str], Tuple[int, int]] = {}
        self.hits = 0
        self.misses = 0
        self.clears = 0

    def cache_info(self) -> Dict[str, int]:
        return {
            'size': len(self._cache),
            'hits': self.hits,
            'misses': self.misses,
            'clears': self.clears,
            'max_entries': self.max_cache_entries,
        }

    def clear_cache(self) -> None:
        self._cache.clear()
        self.clears += 1

    def best_move(
        self,
        board: Sequence[Optional[str]],
        ai_mark: str,
        opponent_model=None,
        adaptive_rate: float = 0.0,
        rng: Optional[np.random.Generator] = None,
    ) -> int:
        """Minimax-optimal move for `ai_mark`, or NO_MOVE on a full board.

        `opponent_model` (anything with ``counter_move(board)``) is consulted
        with probability `adaptive_rate` before the fork/center heuristics.
        Heuristic suggestions are only played when search confirms they do
        not lose.
        """
        if len(self._cache) > self.max_cache_entries:
            self.clear_cache()

        empties = empty_cells(board)
        if not empties:
            return NO_MOVE
        if len(empties) == 1:
            return empties[0]

        opp = opponent_of(ai_mark)
        win = winning_move(board, ai_mark)
        if win is not None:
            return win
        block = winning_move(board, opp)
        if block is not None:
            return block

        work = list(board)
        suggestions: List[Tuple[str, Optional[int]]] = []
        if opponent_model is not None and adaptive_rate > 0.0:
            counter = opponent_model.counter_move(work)
            if counter is not None:
                draw = rng.random() if rng is not None else 0.0
                if draw < adaptive_rate:
                    suggestions.append(('adaptive', counter))
        suggestions.append(('fork', fork_move(work, ai_mark)))
        suggestions.append(('block_fork', fork_move(work, opp)))
        suggestions.append(('center', CENTER if work[CENTER] is None else None))

        for label, move in suggestions:
            if move is None or work[move] is not None:
                continue
            if self.score_move(work, move, ai_mark) >= 0:
                logging.debug("exact search: %s move %d", label, move)
                return move
            logging.debug("exact search: rejected losing %s move %d", label, move)

        best_move = NO_MOVE
        best_score: Optional[int] = None
        for index in empties:
            score = self.score_move(work, index, ai_mark)
            if best_score is None or score > best_score:
                best_score = score
                best_move = index
        return best_move

    def score_move(self, work: List[Optional[str]], index: int, ai_mark: str) -> int:
        """Minimax value of `ai_mark` playing `index`; `work` is restored before returning."""
        work[index] = ai_mark
        try:
            return self._minimax(work, 0, False, ai_mark, opponent_of(ai_mark), SCORE_FLOOR, SCORE_CEIL)
        finally:
            work[index] = None

    def _minimax(
        self,
        board: List[Optional[str]],
        depth: int,
        maximizing: bool,
        ai_mark: str,
        opp_mark: str,
        alpha: int,
        beta: int,
    ) -> int:
        key = (serialize_board(board), maximizing, depth, ai_mark)
        entry = self._cache.get(key)
        if entry is not None:
            value, flag = entry
            if (flag == EXACT
                    or (flag == LOWER and value >= beta)
                    or (flag == UPPER and value <= alpha)):
                self.hits += 1
                return value
        self.misses += 1

        winner = get_winner(board)
        if winner is not None:
            score = WIN_SCORE - depth if winner == ai_mark else depth - WIN_SCORE
            self._cache[key] = (score, EXACT)
            return score
        if None not in board:
            self._cache[key] = (0, EXACT)
            return 0

        alpha0, beta0 = alpha, beta
        if maximizing:
            best = SCORE_FLOOR
            for i in range(9):
                if board[i] is not None:
                    continue
                board[i] = ai_mark
                score = self._minimax(board, depth + 1, False, ai_mark, opp_mark, alpha, beta)
                board[i] = None
                best = max(best, score)
                alpha = max(alpha, best)
                if beta <= alpha:
                    break
        else:
            best = SCORE_CEIL
            for i in range(9):
                if board[i] is not None:
                    continue
                board[i] = opp_mark
                score = self._minimax(board, depth + 1, True, ai_mark, opp_mark, alpha, beta)
                board[i] = None
                best = min(best, score)
                beta = min(beta, best)
                if beta <= alpha:
                    break

        if best <= alpha0:
            flag = UPPER
        elif best >= beta0:
            flag = LOWER
        else:
            flag = EXACT
        self._cache[key] = (best, flag)
        return best
