import csv
import importlib.util
import json
from pathlib import Path

import pytest

from tictactoe_ai.config import EngineConfig
from tictactoe_ai.engine import AdaptiveEngine
from tictactoe_ai.export import export_learned_state
from tictactoe_ai.game_basics import deserialize_board

HAVE_PARQUET = (importlib.util.find_spec("pandas") is not None
                and importlib.util.find_spec("pyarrow") is not None)


def _engine() -> AdaptiveEngine:
    engine = AdaptiveEngine(EngineConfig(mcts_iterations=100), seed=0)
    engine.observe_player_move(deserialize_board("X--------"), 4)
    engine.observe_player_move(deserialize_board("----X----"), 0)
    engine.selector.update('center', 'win')
    return engine


def test_csv_export_and_manifest(tmp_path: Path):
    res = export_learned_state(_engine(), tmp_path, "csv")
    assert res.arm_rows == 8
    with (tmp_path / "ttt_ai_arms.csv").open() as f:
        arms = list(csv.DictReader(f))
    assert [r['name'] for r in arms][:2] == ['minimax', 'mcts']
    center = next(r for r in arms if r['name'] == 'center')
    assert float(center['alpha']) == 2.0
    with (tmp_path / "ttt_ai_patterns.csv").open() as f:
        patterns = list(csv.DictReader(f))
    assert len(patterns) == res.pattern_rows
    # 8 empties in each observed state
    assert res.pattern_rows == 16
    for state in {r['board_state'] for r in patterns}:
        total = sum(float(r['probability']) for r in patterns if r['board_state'] == state)
        assert abs(total - 1.0) < 1e-9

    m = json.loads((tmp_path / "manifest.json").read_text())
    assert m['row_counts'] == {'arms': 8, 'patterns': 16}
    assert set(m['checksums']) == {'arms_csv', 'patterns_csv'}
    assert m['parquet_written'] is False


def test_export_from_snapshot(tmp_path: Path):
    engine = _engine()
    snapshot = {'bandit': engine.selector.stats(), 'bayesian': engine.opponent_model.stats()}
    res = export_learned_state(snapshot, tmp_path)
    assert res.wrote_csv and res.pattern_rows == 16


def test_unknown_format(tmp_path: Path):
    with pytest.raises(ValueError):
        export_learned_state(_engine(), tmp_path, "xlsx")


@pytest.mark.skipif(HAVE_PARQUET, reason="parquet dependencies installed")
def test_parquet_only_fails_fast_without_deps(tmp_path: Path):
    out = tmp_path / "pq"
    with pytest.raises(RuntimeError):
        export_learned_state(_engine(), out, "parquet")
    assert not out.exists()


@pytest.mark.skipif(HAVE_PARQUET, reason="parquet dependencies installed")
def test_both_degrades_to_csv_without_deps(tmp_path: Path):
    res = export_learned_state(_engine(), tmp_path, "both")
    assert res.wrote_csv and not res.wrote_parquet


@pytest.mark.skipif(not HAVE_PARQUET, reason="pandas/pyarrow not installed")
def test_parquet_matches_csv(tmp_path: Path):
    import pandas as pd  # type: ignore

    res = export_learned_state(_engine(), tmp_path, "both")
    assert res.wrote_parquet
    df = pd.read_parquet(tmp_path / "ttt_ai_patterns.parquet")
    assert len(df) == res.pattern_rows
    assert list(df.columns) == ['board_state', 'move', 'probability', 'total_observations']
