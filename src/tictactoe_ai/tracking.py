"""
Optional MLflow tracking for self-play runs and benchmarks.

MLflow is imported only when tracking is requested; every call soft-fails
so a missing or misconfigured backend never stops a run.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterator, Optional

if TYPE_CHECKING:
    from .arena import ArenaSummary


@contextmanager
def maybe_mlflow_run(enabled: bool, run_name: str, log_dir: Optional[Path] = None) -> Iterator[bool]:
    """Yield True while an MLflow run is active, False otherwise."""
    if not enabled:
        yield False
        return
    try:
        import mlflow  # type: ignore
    except ImportError:
        logging.warning("Tracking requested but mlflow is not installed; continuing without it")
        yield False
        return
    try:
        if log_dir is not None:
            mlflow.set_tracking_uri((log_dir / "mlruns").resolve().as_uri())
        run = mlflow.start_run(run_name=run_name)
    except Exception as e:
        logging.warning("Could not start MLflow run: %s", e)
        yield False
        return
    with run:
        yield True


def log_params(params: Dict[str, object]) -> None:
    try:
        import mlflow  # type: ignore

        mlflow.log_params(params)
    except Exception as e:
        logging.debug("mlflow log_params skipped: %s", e)


def log_metrics(metrics: Dict[str, float]) -> None:
    try:
        import mlflow  # type: ignore

        mlflow.log_metrics(metrics)
    except Exception as e:
        logging.debug("mlflow log_metrics skipped: %s", e)


def log_artifact(path: Path, artifact_path: Optional[str] = None) -> None:
    try:
        import mlflow  # type: ignore

        mlflow.log_artifact(str(path), artifact_path=artifact_path)
    except Exception as e:
        logging.debug("mlflow log_artifact skipped: %s", e)


def log_arena_summary(summary: "ArenaSummary") -> None:
    log_params({
        'opponent': summary.opponent,
        'variant': summary.variant,
        'difficulty': summary.difficulty,
        'ai_mark': summary.ai_mark,
        'games': summary.games,
    })
    metrics = {
        'wins': float(summary.wins),
        'losses': float(summary.losses),
        'draws': float(summary.draws),
        'win_rate': summary.win_rate,
        'avg_plies': summary.avg_plies,
    }
    for name, count in summary.strategy_usage.items():
        metrics[f'usage_{name}'] = float(count)
    log_metrics(metrics)
