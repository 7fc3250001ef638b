import json
from pathlib import Path

from tictactoe_ai.config import EngineConfig
from tictactoe_ai.engine import AdaptiveEngine
from tictactoe_ai.game_basics import deserialize_board
from tictactoe_ai.schema import LEARNING_VERSION
from tictactoe_ai.store import BANDIT_KEY, BAYESIAN_KEY, FileBlobStore, MemoryBlobStore

FAST = EngineConfig(mcts_iterations=100)


def _trained(store) -> AdaptiveEngine:
    engine = AdaptiveEngine(FAST, blob_store=store, seed=0)
    engine.observe_player_move(deserialize_board("X--------"), 4)
    engine.observe_player_move(deserialize_board("X--------"), 4)
    engine.selector.update('corners', 'win')
    engine.selector.current = 'corners'
    assert engine.save()
    return engine


def test_blobs_carry_version_and_timestamp():
    store = MemoryBlobStore()
    _trained(store)
    for key in (BANDIT_KEY, BAYESIAN_KEY):
        blob = json.loads(store.get(key))
        assert blob['version'] == LEARNING_VERSION
        assert isinstance(blob['timestamp'], int)
    assert json.loads(store.get(BANDIT_KEY))['currentStrategy'] == 'corners'


def test_file_store_roundtrip(tmp_path: Path):
    store = FileBlobStore(tmp_path / "learn")
    trained = _trained(store)
    assert (tmp_path / "learn" / f"{BANDIT_KEY}.json").exists()

    fresh = AdaptiveEngine(FAST, blob_store=FileBlobStore(tmp_path / "learn"), seed=0)
    report = fresh.load()
    assert report.ok
    assert report.bandit.loaded == 8
    assert report.bayesian.loaded == 1
    assert fresh.selector.current == 'corners'
    assert fresh.stats()['bandit'] == trained.stats()['bandit']
    board = deserialize_board("X--------")
    assert fresh.opponent_model.predict(board).move == trained.opponent_model.predict(board).move


def test_missing_blobs_are_a_cold_start():
    engine = AdaptiveEngine(FAST, blob_store=MemoryBlobStore(), seed=0)
    report = engine.load()
    assert not report.found
    assert report.error is None
    assert engine.stats()['bayesian']['totalPatterns'] == 0


def test_corrupt_json_is_discarded():
    store = MemoryBlobStore()
    store.put(BANDIT_KEY, "{not json")
    store.put(BAYESIAN_KEY, "{}")
    engine = AdaptiveEngine(FAST, blob_store=store, seed=0)
    report = engine.load()
    assert report.found and not report.ok
    assert "unparsable" in report.error
    assert store.blobs == {}
    assert all(a.total == 3 for a in engine.selector.arms.values())


def test_structurally_wrong_blob_is_ignored():
    store = MemoryBlobStore()
    store.put(BANDIT_KEY, json.dumps({'version': '1.0.0'}))
    store.put(BAYESIAN_KEY, json.dumps({'patternDetails': []}))
    report = AdaptiveEngine(FAST, blob_store=store, seed=0).load()
    assert report.found
    assert not report.bandit.ok
    assert report.bayesian.ok


def test_persistence_info_and_reset(tmp_path: Path):
    store = FileBlobStore(tmp_path)
    engine = _trained(store)
    info = engine.store.persistence_info()
    assert info['hasSavedBanditData'] and info['hasSavedBayesianData']
    assert isinstance(info['lastSavedTimestamp'], int)
    engine.reset()
    info = engine.store.persistence_info()
    assert not info['hasSavedBanditData']
    assert info['lastSavedTimestamp'] is None
    assert list(tmp_path.iterdir()) == []


def test_undecodable_file_is_a_cold_start(tmp_path: Path):
    (tmp_path / f"{BANDIT_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
    (tmp_path / f"{BAYESIAN_KEY}.json").write_text("{}", encoding="utf-8")
    engine = AdaptiveEngine(FAST, blob_store=FileBlobStore(tmp_path), seed=0)
    info = engine.store.persistence_info()
    assert info['hasSavedBanditData'] is False and 'error' in info
    report = engine.load()
    assert report.found and not report.ok
    assert "undecodable" in report.error
    assert list(tmp_path.iterdir()) == []
    assert all(a.total == 3 for a in engine.selector.arms.values())
