import time

import numpy as np

from tictactoe_ai.game_basics import LIMITED, NO_MOVE, deserialize_board
from tictactoe_ai.mcts import MCTSPlanner


def _planner(seed=0, **kw):
    return MCTSPlanner(np.random.default_rng(seed), **kw)


def test_immediate_win_and_block():
    p = _planner()
    assert p.best_move(deserialize_board("XX-OO----"), "X") == 2
    assert p.best_move(deserialize_board("XX--O----"), "O") == 2


def test_returns_legal_move():
    b = deserialize_board("X---O----")
    move = _planner(iterations=300).best_move(b, "X")
    assert 0 <= move <= 8 and b[move] is None


def test_respects_time_budget():
    iterations, time_ms = 10**9, 50
    p = _planner(iterations=iterations, time_ms=time_ms)
    t0 = time.perf_counter()
    p.best_move([None] * 9, "X")
    assert time.perf_counter() - t0 < time_ms / 1000 + 0.25
    report = p.search_stats([None] * 9, "X")
    assert 0 < report.iterations_completed < iterations
    assert report.time_spent_ms < time_ms + 250


def test_zero_time_budget_yields_no_move():
    assert _planner().best_move([None] * 9, "X", time_ms=0) == NO_MOVE


def test_search_stats_counts_iterations():
    report = _planner().search_stats([None] * 9, "X", iterations=200, time_ms=10_000)
    assert report.iterations_completed == 200
    assert report.total_simulations == 200
    assert sum(s.visits for s in report.move_stats) == 200
    visits = [s.visits for s in report.move_stats]
    assert visits == sorted(visits, reverse=True)


def test_limited_variant_respects_eviction():
    # X's oldest piece (0) leaves on its next placement, so 2 is not a win
    b = deserialize_board("XX--O--OX")
    move = _planner(iterations=300).best_move(
        b, "X", variant=LIMITED, ai_history=[0, 1, 8], opp_history=[4, 7]
    )
    assert b[move] is None


def test_seeded_search_is_reproducible():
    b = deserialize_board("X---O----")
    a = _planner(seed=7, iterations=200, time_ms=10_000).best_move(b, "X")
    c = _planner(seed=7, iterations=200, time_ms=10_000).best_move(b, "X")
    assert a == c
