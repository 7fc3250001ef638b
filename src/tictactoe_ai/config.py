"""Engine tunables, with environment overrides for the search budgets."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class EngineConfig:
    mcts_iterations: int = 1000
    mcts_time_ms: float = 500.0
    medium_mcts_iterations: int = 200
    memo_max_entries: int = 1000
    learning_rate: float = 0.2
    min_observations: int = 2
    limited_depth: int = 2

    def __post_init__(self) -> None:
        if self.mcts_iterations < 1 or self.medium_mcts_iterations < 1:
            raise ValueError("MCTS iteration budgets must be >= 1")
        if self.mcts_time_ms <= 0:
            raise ValueError("MCTS time budget must be positive")
        if self.memo_max_entries < 1:
            raise ValueError("memo_max_entries must be >= 1")
        if not 0.0 < self.learning_rate <= 1.0:
            raise ValueError("learning_rate must be in (0, 1]")
        if self.limited_depth < 0:
            raise ValueError("limited_depth must be >= 0")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Defaults overridden by TTT_MCTS_ITERATIONS, TTT_MCTS_TIME_MS, TTT_MEMO_MAX_ENTRIES."""
        cfg = cls()
        overrides = {}
        for var, name, cast in (
            ("TTT_MCTS_ITERATIONS", "mcts_iterations", int),
            ("TTT_MCTS_TIME_MS", "mcts_time_ms", float),
            ("TTT_MEMO_MAX_ENTRIES", "memo_max_entries", int),
        ):
            raw = os.getenv(var)
            if raw is None or not raw.strip():
                continue
            try:
                overrides[name] = cast(raw)
            except ValueError:
                raise ValueError(f"{var} must be a number, got {raw!r}") from None
        return replace(cfg, **overrides) if overrides else cfg
