#!/usr/bin/env python3
from __future__ import annotations

import math
import statistics as stats
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from tictactoe_ai.arena import run_selfplay
from tictactoe_ai.config import EngineConfig
from tictactoe_ai.engine import AdaptiveEngine
from tictactoe_ai.game_basics import deserialize_board
from tictactoe_ai.tracking import log_arena_summary, log_metrics, log_params, maybe_mlflow_run

POSITIONS = {
    "opening": "---------",
    "midgame": "X---O---X",
    "threat": "XX--O----",
}


def ci95(values: List[float]) -> Tuple[float, float]:
    if not values:
        return (float("nan"), float("nan"))
    m = stats.fmean(values)
    s = stats.pstdev(values) if len(values) > 1 else 0.0
    half = 1.96 * (s / math.sqrt(len(values)))
    return m, half


@dataclass
class Config:
    seeds: int = 10
    difficulty: str = "hard"
    selfplay_games: int = 20
    tracking: str = "none"  # or "mlflow"
    log_dir: Path = Path("runs")


def main() -> int:
    cfg = Config()
    engine_cfg = EngineConfig.from_env()
    with maybe_mlflow_run(cfg.tracking == "mlflow", run_name="benchmarks", log_dir=cfg.log_dir):
        log_params({"seeds": cfg.seeds, "difficulty": cfg.difficulty,
                    "mcts_iterations": engine_cfg.mcts_iterations})
        latencies: Dict[str, List[float]] = {name: [] for name in POSITIONS}
        for s in range(cfg.seeds):
            engine = AdaptiveEngine(engine_cfg, seed=s)
            for name, raw in POSITIONS.items():
                board = deserialize_board(raw)
                mark = "X" if board.count("X") == board.count("O") else "O"
                t0 = time.perf_counter()
                engine.compute_move(board, mark, difficulty=cfg.difficulty)
                latencies[name].append(time.perf_counter() - t0)

        metrics: Dict[str, float] = {}
        for name, values in latencies.items():
            m, h = ci95(values)
            metrics[f"{name}_mean_s"] = m
            metrics[f"{name}_ci95_half_s"] = h
            print(f"{name}: mean={m:.4f}s ± {h:.4f}s (95% CI, N={cfg.seeds})")
        log_metrics(metrics)

        summary = run_selfplay(AdaptiveEngine(engine_cfg, seed=0), cfg.selfplay_games,
                               opponent="random", difficulty=cfg.difficulty)
        log_arena_summary(summary)
        print(f"selfplay vs random: W/L/D = {summary.wins}/{summary.losses}/{summary.draws}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
