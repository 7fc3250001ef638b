"""
Multi-armed bandit over the eight strategies, using Thompson sampling.

Each arm keeps a Beta(alpha, beta) belief about its chance of winning
against the current opponent. Wins add to alpha, losses to beta, draws add
half to each. Samples use the ratio-of-powers approximation
x = u**(1/alpha), y = v**(1/beta), sample = x / (x + y); only the ranking of
samples across arms matters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .game_basics import CLASSIC
from .schema import LoadResult, is_number
from .strategies import HARD_ADAPTIVE_RATE, STRATEGY_NAMES, StrategyToolkit, play_strategy

WIN, LOSS, DRAW = 'win', 'loss', 'draw'


@dataclass
class StrategyStats:
    name: str
    wins: float = 1
    losses: float = 1
    draws: float = 1
    total: float = 3
    alpha: float = 1.0
    beta: float = 1.0

    @property
    def win_rate(self) -> float:
        return self.wins / self.total if self.total else 0.0

    @property
    def expected_value(self) -> float:
        return self.alpha / (self.alpha + self.beta)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'total': self.total,
            'winRate': self.win_rate,
            'alpha': self.alpha,
            'beta': self.beta,
            'expectedValue': self.expected_value,
        }


def outcome_for(winner: Optional[str], ai_mark: str) -> str:
    if winner is None:
        return DRAW
    return WIN if winner == ai_mark else LOSS


class StrategySelector:
    def __init__(self, toolkit: StrategyToolkit) -> None:
        self.toolkit = toolkit
        self.arms: Dict[str, StrategyStats] = {}
        self.current: Optional[str] = None
        self.reset()

    @property
    def rng(self) -> np.random.Generator:
        return self.toolkit.rng

    def reset(self) -> None:
        self.arms = {name: StrategyStats(name) for name in STRATEGY_NAMES}
        self.current = None

    def sample(self) -> np.ndarray:
        """One Thompson draw per arm, in STRATEGY_NAMES order."""
        alpha = np.array([self.arms[n].alpha for n in STRATEGY_NAMES], dtype=float)
        beta = np.array([self.arms[n].beta for n in STRATEGY_NAMES], dtype=float)
        x = self.rng.random(len(alpha)) ** (1.0 / alpha)
        y = self.rng.random(len(beta)) ** (1.0 / beta)
        denom = x + y
        return np.divide(x, denom, out=np.full_like(denom, 0.5), where=denom > 0)

    def select_strategy(self) -> str:
        samples = self.sample()
        self.current = STRATEGY_NAMES[int(np.argmax(samples))]
        logging.debug("bandit selected %s", self.current)
        return self.current

    def update(self, name: str, result: str) -> None:
        try:
            stats = self.arms[name]
        except KeyError:
            raise ValueError(f"Unknown strategy: {name!r}") from None
        if result == WIN:
            stats.wins += 1
            stats.alpha += 1
        elif result == LOSS:
            stats.losses += 1
            stats.beta += 1
        elif result == DRAW:
            stats.draws += 1
            stats.alpha += 0.5
            stats.beta += 0.5
        else:
            raise ValueError(f"Unknown outcome: {result!r}")
        stats.total += 1

    def record_outcome(self, winner: Optional[str], ai_mark: str) -> Optional[str]:
        """Credit the finished game to the arm that played it; no-op before any selection."""
        if self.current is None:
            logging.debug("bandit: outcome ignored, no strategy selected yet")
            return None
        result = outcome_for(winner, ai_mark)
        self.update(self.current, result)
        return result

    def move(
        self,
        strategy: str,
        board: Sequence[Optional[str]],
        mark: str,
        variant: str = CLASSIC,
        ai_history: Sequence[int] = (),
        opp_history: Sequence[int] = (),
        adaptive_rate: float = HARD_ADAPTIVE_RATE,
    ) -> int:
        return play_strategy(
            strategy, board, mark, self.toolkit, variant, ai_history, opp_history, adaptive_rate
        )

    def adaptive_move(
        self,
        board: Sequence[Optional[str]],
        mark: str,
        variant: str = CLASSIC,
        ai_history: Sequence[int] = (),
        opp_history: Sequence[int] = (),
        adaptive_rate: float = HARD_ADAPTIVE_RATE,
    ) -> int:
        strategy = self.select_strategy()
        return self.move(strategy, board, mark, variant, ai_history, opp_history, adaptive_rate)

    def stats(self) -> Dict[str, Any]:
        return {
            'strategies': [self.arms[name].to_dict() for name in STRATEGY_NAMES],
            'currentStrategy': self.current,
        }

    def load(self, blob: Any) -> LoadResult:
        """Restore arms from a `stats()` snapshot; invalid arms keep their current stats."""
        if not isinstance(blob, dict) or not isinstance(blob.get('strategies'), list):
            return LoadResult(ok=False, error="missing strategies list")
        loaded = skipped = 0
        for item in blob['strategies']:
            stats = _arm_from_blob(item)
            if stats is None:
                skipped += 1
                continue
            self.arms[stats.name] = stats
            loaded += 1
        current = blob.get('currentStrategy')
        self.current = current if current in STRATEGY_NAMES else None
        return LoadResult(ok=True, loaded=loaded, skipped=skipped)


_ARM_FIELDS: List[str] = ['wins', 'losses', 'draws', 'total', 'alpha', 'beta']


def _arm_from_blob(item: Any) -> Optional[StrategyStats]:
    if not isinstance(item, dict) or item.get('name') not in STRATEGY_NAMES:
        return None
    values = {}
    for key in _ARM_FIELDS:
        value = item.get(key)
        if not is_number(value) or value < 0:
            return None
        values[key] = value
    if values['alpha'] <= 0 or values['beta'] <= 0:
        return None
    return StrategyStats(name=item['name'], **values)
