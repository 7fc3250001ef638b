"""
Self-play arena: the engine against scripted opponents.

Every opponent move is fed to the engine's opponent model and every finished
game to its bandit, so a run doubles as a training session.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

import numpy as np

from .engine import AdaptiveEngine
from .game_basics import CLASSIC, LIMITED, X, GameState, check_variant, empty_cells, opponent_of
from .settings import check_difficulty

OPPONENTS = ("random", "perfect", "patterned")
PATTERN_ORDER = [4, 0, 2, 6, 8, 1, 3, 5, 7]
DEFAULT_LIMITED_PLY_CAP = 30


@dataclass
class ArenaSummary:
    opponent: str
    variant: str
    difficulty: str
    ai_mark: str
    games: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    total_plies: int = 0
    strategy_usage: Dict[str, int] = field(default_factory=dict)

    @property
    def win_rate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    @property
    def avg_plies(self) -> float:
        return self.total_plies / self.games if self.games else 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            'opponent': self.opponent,
            'variant': self.variant,
            'difficulty': self.difficulty,
            'ai_mark': self.ai_mark,
            'games': self.games,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'win_rate': self.win_rate,
            'avg_plies': self.avg_plies,
            'strategy_usage': dict(self.strategy_usage),
        }


OpponentPolicy = Callable[[GameState], int]


def _make_opponent(name: str, engine: AdaptiveEngine, rng: np.random.Generator) -> OpponentPolicy:
    if name == "random":
        def policy(state: GameState) -> int:
            cells = empty_cells(state.board)
            return cells[int(rng.integers(len(cells)))]
    elif name == "perfect":
        def policy(state: GameState) -> int:
            mark = state.to_move
            if state.variant == LIMITED:
                return engine.limited.best_move(
                    state.board, mark, state.history_of(mark), state.history_of(opponent_of(mark))
                )
            return engine.exact.best_move(state.board, mark)
    elif name == "patterned":
        def policy(state: GameState) -> int:
            return next(i for i in PATTERN_ORDER if state.board[i] is None)
    else:
        raise ValueError(f"Unknown opponent: {name!r}; expected one of {OPPONENTS}")
    return policy


def play_game(
    engine: AdaptiveEngine,
    opponent: OpponentPolicy,
    variant: str = CLASSIC,
    difficulty: str = "hard",
    ai_mark: str = X,
    ply_cap: int = DEFAULT_LIMITED_PLY_CAP,
) -> GameState:
    """Play one game to completion; limited games stop as a draw at `ply_cap`."""
    state = GameState(variant=variant)
    opp_mark = opponent_of(ai_mark)
    while not state.is_over:
        if variant == LIMITED and state.plies >= ply_cap:
            state.drawn = True
            break
        if state.to_move == ai_mark:
            move = engine.compute_move(
                state.board, ai_mark, variant,
                state.history_of(ai_mark), state.history_of(opp_mark), difficulty,
            )
            state.play(move)
        else:
            move = opponent(state)
            before = state.play(move)
            engine.observe_player_move(before, move)
    return state


def run_selfplay(
    engine: AdaptiveEngine,
    games: int,
    opponent: str = "random",
    variant: str = CLASSIC,
    difficulty: str = "hard",
    ai_mark: str = X,
    ply_cap: int = DEFAULT_LIMITED_PLY_CAP,
    rng: Optional[np.random.Generator] = None,
) -> ArenaSummary:
    if games < 0:
        raise ValueError("games must be >= 0")
    check_variant(variant)
    check_difficulty(difficulty)
    opponent_of(ai_mark)
    policy = _make_opponent(opponent, engine, rng if rng is not None else engine.rng)

    summary = ArenaSummary(opponent=opponent, variant=variant, difficulty=difficulty, ai_mark=ai_mark)
    usage: Counter = Counter()
    for game in range(games):
        state = play_game(engine, policy, variant, difficulty, ai_mark, ply_cap)
        credited = engine.selector.current
        result = engine.record_game_outcome(state.winner, ai_mark)
        if result is not None and credited is not None:
            usage[credited] += 1
        summary.games += 1
        summary.total_plies += state.plies
        if state.winner == ai_mark:
            summary.wins += 1
        elif state.winner is not None:
            summary.losses += 1
        else:
            summary.draws += 1
        logging.debug("game %d: winner=%s plies=%d strategy=%s", game + 1, state.winner, state.plies, credited)

    summary.strategy_usage = dict(sorted(usage.items()))
    logging.info(
        "Self-play vs %s (%s, %s): %d games, W/L/D = %d/%d/%d",
        opponent, variant, difficulty, summary.games, summary.wins, summary.losses, summary.draws,
    )
    return summary
