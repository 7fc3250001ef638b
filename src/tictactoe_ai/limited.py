"""
Move search for the limited variant (3 live pieces per player, oldest evicted).

Boards in this variant never fill up, so search cannot rely on terminal
draws: it looks a fixed number of plies past each candidate, simulating
eviction exactly as in play, and scores leaves with the positional
heuristic. Completed lines at a leaf score +/-TERMINAL_SCORE minus the ply.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .features import evaluate_limited_position
from .game_basics import CENTER, LIMITED, MAX_PIECES, NO_MOVE, apply_move, empty_cells, get_winner, opponent_of
from .tactics import fork_move, limited_winning_move

DEFAULT_DEPTH = 2
TERMINAL_SCORE = 1000


class LimitedVariantSearch:
    def __init__(self, depth: int = DEFAULT_DEPTH, max_pieces: int = MAX_PIECES) -> None:
        self.depth = depth
        self.max_pieces = max_pieces

    def best_move(
        self,
        board: Sequence[Optional[str]],
        ai_mark: str,
        ai_history: Sequence[int],
        opp_history: Sequence[int],
    ) -> int:
        empties = empty_cells(board)
        if not empties:
            return NO_MOVE
        opp = opponent_of(ai_mark)

        win = limited_winning_move(board, ai_mark, ai_history)
        if win is not None:
            return win
        block = limited_winning_move(board, opp, opp_history)
        if block is not None:
            return block

        if len(ai_history) < self.max_pieces:
            if board[CENTER] is None:
                return CENTER
            fork = fork_move(board, ai_mark)
            if fork is not None:
                return fork
            block_fork = fork_move(board, opp)
            if block_fork is not None:
                return block_fork

        best_move = empties[0]
        best_score: Optional[int] = None
        for cell in empties:
            child, child_history = apply_move(board, cell, ai_mark, ai_history, LIMITED)
            score = self._lookahead(
                child, ai_mark, opp, child_history, list(opp_history),
                self.depth, maximizing=False, ply=1,
            )
            if best_score is None or score > best_score:
                best_score = score
                best_move = cell
        logging.debug("limited search: move %d score %s", best_move, best_score)
        return best_move

    def _lookahead(
        self,
        board: List[Optional[str]],
        ai_mark: str,
        opp_mark: str,
        ai_history: List[int],
        opp_history: List[int],
        depth: int,
        maximizing: bool,
        ply: int,
    ) -> int:
        winner = get_winner(board)
        if winner is not None:
            return TERMINAL_SCORE - ply if winner == ai_mark else ply - TERMINAL_SCORE
        empties = empty_cells(board)
        if depth == 0 or not empties:
            return evaluate_limited_position(
                board, ai_mark, opp_mark, ai_history, opp_history, self.max_pieces
            )

        best: Optional[int] = None
        for cell in empties:
            if maximizing:
                child, history = apply_move(board, cell, ai_mark, ai_history, LIMITED)
                score = self._lookahead(child, ai_mark, opp_mark, history, opp_history,
                                        depth - 1, False, ply + 1)
                if best is None or score > best:
                    best = score
            else:
                child, history = apply_move(board, cell, opp_mark, opp_history, LIMITED)
                score = self._lookahead(child, ai_mark, opp_mark, ai_history, history,
                                        depth - 1, True, ply + 1)
                if best is None or score < best:
                    best = score
        return best  # type: ignore[return-value]
