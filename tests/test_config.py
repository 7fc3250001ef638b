import pytest

from tictactoe_ai.config import EngineConfig


def test_defaults():
    cfg = EngineConfig()
    assert cfg.mcts_iterations == 1000
    assert cfg.mcts_time_ms == 500.0
    assert cfg.memo_max_entries == 1000


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TTT_MCTS_ITERATIONS", "250")
    monkeypatch.setenv("TTT_MCTS_TIME_MS", "75.5")
    monkeypatch.delenv("TTT_MEMO_MAX_ENTRIES", raising=False)
    cfg = EngineConfig.from_env()
    assert cfg.mcts_iterations == 250
    assert cfg.mcts_time_ms == 75.5
    assert cfg.memo_max_entries == 1000


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("TTT_MEMO_MAX_ENTRIES", "lots")
    with pytest.raises(ValueError):
        EngineConfig.from_env()


@pytest.mark.parametrize("kwargs", [
    {"mcts_iterations": 0},
    {"mcts_time_ms": 0},
    {"memo_max_entries": 0},
    {"learning_rate": 1.5},
])
def test_validation(kwargs):
    with pytest.raises(ValueError):
        EngineConfig(**kwargs)
