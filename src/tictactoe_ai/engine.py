"""
Adaptive engine: the single entry point a game-flow driver talks to.

It owns the learning models and the search components, dispatches move
requests by difficulty, and accepts observations (opponent moves, finished
games) that drive learning. All calls are synchronous and expected to come
from one driver at a time.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .bandit import StrategySelector
from .bayesian import OpponentModel
from .config import EngineConfig
from .game_basics import (
    CENTER,
    CLASSIC,
    LIMITED,
    NO_MOVE,
    check_variant,
    empty_cells,
    opponent_of,
)
from .limited import LimitedVariantSearch
from .mcts import MCTSPlanner
from .settings import check_difficulty
from .solver import ExactSearch
from .store import BlobStore, LearningStore, StoreLoadReport
from .strategies import HARD_ADAPTIVE_RATE, MEDIUM_ADAPTIVE_RATE, StrategyToolkit
from .tactics import limited_winning_move, winning_move

EASY_TAKE_WIN = 0.8
EASY_TAKE_BLOCK = 0.5
EASY_TAKE_CENTER = 0.3
MEDIUM_USE_ADAPTIVE = 0.7


class AdaptiveEngine:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        blob_store: Optional[BlobStore] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.rng = np.random.default_rng(seed)
        self.opponent_model = OpponentModel(self.config.learning_rate, self.config.min_observations)
        self.exact = ExactSearch(self.config.memo_max_entries)
        self.limited = LimitedVariantSearch(depth=self.config.limited_depth)
        self.mcts = MCTSPlanner(self.rng, self.config.mcts_iterations, self.config.mcts_time_ms)
        self.toolkit = StrategyToolkit(
            exact=self.exact,
            limited=self.limited,
            mcts=self.mcts,
            opponent_model=self.opponent_model,
            rng=self.rng,
        )
        self.selector = StrategySelector(self.toolkit)
        self.store = (
            LearningStore(blob_store, self.opponent_model, self.selector)
            if blob_store is not None else None
        )

    def compute_move(
        self,
        board: Sequence[Optional[str]],
        ai_mark: str,
        variant: str = CLASSIC,
        ai_history: Sequence[int] = (),
        opp_history: Sequence[int] = (),
        difficulty: str = "hard",
    ) -> int:
        """Cell index for `ai_mark` to play, or NO_MOVE when the board is full."""
        check_variant(variant)
        check_difficulty(difficulty)
        opponent_of(ai_mark)
        empties = empty_cells(board)
        if not empties:
            return NO_MOVE

        if difficulty == "easy":
            move = self._easy_move(board, ai_mark, variant, ai_history, opp_history)
        elif difficulty == "medium" and self.rng.random() >= MEDIUM_USE_ADAPTIVE:
            move = self.mcts.best_move(
                board, ai_mark,
                iterations=self.config.medium_mcts_iterations,
                variant=variant, ai_history=ai_history, opp_history=opp_history,
            )
        else:
            rate = MEDIUM_ADAPTIVE_RATE if difficulty == "medium" else HARD_ADAPTIVE_RATE
            move = self.selector.adaptive_move(
                board, ai_mark, variant, ai_history, opp_history, adaptive_rate=rate
            )

        if move not in empties:
            logging.warning("Engine produced unusable move %s; falling back to a random cell", move)
            move = self._random_cell(empties)
        return move

    def _easy_move(self, board, ai_mark, variant, ai_history, opp_history) -> int:
        opp = opponent_of(ai_mark)
        if self.rng.random() < EASY_TAKE_WIN:
            if variant == LIMITED:
                win = limited_winning_move(board, ai_mark, ai_history)
            else:
                win = winning_move(board, ai_mark)
            if win is not None:
                return win
        if self.rng.random() < EASY_TAKE_BLOCK:
            if variant == LIMITED:
                block = limited_winning_move(board, opp, opp_history)
            else:
                block = winning_move(board, opp)
            if block is not None:
                return block
        empties = empty_cells(board)
        if board[CENTER] is None and self.rng.random() < EASY_TAKE_CENTER:
            return CENTER
        return self._random_cell(empties)

    def _random_cell(self, cells: Sequence[int]) -> int:
        return cells[int(self.rng.integers(len(cells)))]

    def observe_player_move(self, board_before: Sequence[Optional[str]], move: int) -> None:
        self.opponent_model.observe(board_before, move)

    def record_game_outcome(self, winner: Optional[str], ai_mark: str) -> Optional[str]:
        """Feed a finished game to the bandit and persist learning when a store is attached."""
        result = self.selector.record_outcome(winner, ai_mark)
        if self.store is not None:
            self.store.save()
        return result

    def stats(self) -> Dict[str, Any]:
        return {
            'bandit': self.selector.stats(),
            'bayesian': self.opponent_model.stats(),
            'persistence': self.store.persistence_info() if self.store is not None else None,
        }

    def save(self) -> bool:
        return self.store.save() if self.store is not None else False

    def load(self) -> Optional[StoreLoadReport]:
        return self.store.load() if self.store is not None else None

    def reset(self) -> None:
        if self.store is not None:
            self.store.reset()
        else:
            self.selector.reset()
            self.opponent_model.reset()
