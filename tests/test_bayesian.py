import math

import pytest

from tictactoe_ai.bayesian import (
    PRIOR_DISTRIBUTION,
    OpponentModel,
    top_moves,
)
from tictactoe_ai.game_basics import deserialize_board
from tictactoe_ai.symmetry import canonical_form


def test_single_observation_is_not_enough_to_predict():
    m = OpponentModel()
    b = [None, None, None, None, "O", None, None, None, None]
    m.observe(b, 0)
    assert m.predict(b) is None
    assert m.counter_move(b) is None


def test_probabilities_stay_normalized():
    m = OpponentModel()
    b = deserialize_board("X--------")
    for move in (4, 4, 8, 1, 4):
        entry = m.observe(b, move)
        assert math.isclose(sum(entry.move_probabilities.values()), 1.0, rel_tol=1e-9)
        assert entry.board_state == canonical_form(b)


def test_new_entry_starts_from_prior_over_empty_cells():
    m = OpponentModel()
    entry = m.observe([None] * 9, 4)
    assert set(entry.move_probabilities) == set(range(9))
    # 0.4 -> 0.52, then renormalized: the prior sums to 1.2, so the new total is 1.32
    assert math.isclose(entry.move_probabilities[4], (PRIOR_DISTRIBUTION[4] * 0.8 + 0.2) / 1.32)


def test_prediction_generalizes_across_symmetry():
    m = OpponentModel()
    # opponent always answers a corner opening in the opposite corner
    for corner, reply in ((0, 8), (2, 6), (6, 2), (8, 0)):
        b = [None] * 9
        b[corner] = "X"
        m.observe(b, reply)
    assert len(m) == 1
    b = [None] * 9
    b[2] = "X"
    pred = m.predict(b)
    assert pred is not None and pred.move == 6


def test_confident_prediction_becomes_counter_move():
    m = OpponentModel(learning_rate=0.5)
    b = deserialize_board("X---O----")
    for _ in range(6):
        m.observe(b, 8)
    pred = m.predict(b)
    assert pred.move == 8 and pred.confidence > 0.6
    assert m.counter_move(b) == 8


def test_observe_rejects_occupied_cell():
    with pytest.raises(ValueError):
        OpponentModel().observe(deserialize_board("X--------"), 0)


def test_stats_and_reload_roundtrip():
    m = OpponentModel()
    b = deserialize_board("X--------")
    m.observe(b, 4)
    m.observe(b, 4)
    blob = m.stats()
    assert blob['totalPatterns'] == 1
    fresh = OpponentModel()
    res = fresh.load(blob)
    assert res.ok and res.loaded == 1 and res.skipped == 0
    assert fresh.predict(b).move == m.predict(b).move
    assert math.isclose(fresh.predict(b).confidence, m.predict(b).confidence)


def test_load_skips_only_corrupted_entry():
    m = OpponentModel()
    m.observe(deserialize_board("X--------"), 4)
    m.observe(deserialize_board("----X----"), 0)
    blob = m.stats()
    broken = dict(blob['patternDetails'][0])
    del broken['probabilities']
    blob['patternDetails'].append(broken)
    blob['patternDetails'].append({'boardState': 'not-a-board', 'probabilities': []})
    fresh = OpponentModel()
    res = fresh.load(blob)
    assert res.ok
    assert res.loaded == 2
    assert res.skipped == 2
    assert len(fresh) == 2


def test_load_rejects_blob_without_patterns():
    res = OpponentModel().load({'totalPatterns': 3})
    assert not res.ok


def test_loaded_distribution_is_renormalized():
    state = canonical_form([None] * 9)
    blob = {'patternDetails': [{
        'boardState': state,
        'observations': 0,
        'probabilities': [{'move': 4, 'probability': 3.0}, {'move': 0, 'probability': 1.0}],
    }]}
    m = OpponentModel()
    assert m.load(blob).loaded == 1
    entry = m.entry(state)
    assert math.isclose(entry.move_probabilities[4], 0.75)
    assert entry.total_observations == 1


def test_top_moves_ranked_by_probability():
    m = OpponentModel()
    b = deserialize_board("X--------")
    for move in (8, 8, 8):
        entry = m.observe(b, move)
    ranked = top_moves(entry, 2)
    assert len(ranked) == 2
    assert ranked[0].confidence >= ranked[1].confidence
    assert ranked[0].move == max(entry.move_probabilities, key=entry.move_probabilities.get)
