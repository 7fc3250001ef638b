from tictactoe_ai.features import (
    corner_opportunity_score,
    evaluate_control_score,
    evaluate_limited_position,
    opponent_opportunity_score,
    removal_impact,
)
from tictactoe_ai.game_basics import deserialize_board


def test_control_score_is_antisymmetric():
    b = deserialize_board("X---O---X")
    assert evaluate_control_score(b, "X", "O") == -evaluate_control_score(b, "O", "X")
    assert evaluate_control_score([None] * 9, "X", "O") == 0


def test_center_worth_more_than_corner_alone():
    center = deserialize_board("----X----")
    corner = deserialize_board("X--------")
    assert evaluate_control_score(center, "X", "O") > evaluate_control_score(corner, "X", "O")


def test_near_win_bonus():
    # four lines at 10 per piece, plus 30 for the live two and 5 for the corner
    assert evaluate_control_score(deserialize_board("XX-------"), "X", "O") == 85
    assert evaluate_control_score(deserialize_board("XXO------"), "X", "O") < 85


def test_removal_impact_of_losing_center():
    b = deserialize_board("O---X---O")
    # X losing its center helps O
    assert removal_impact(b, 4, "X", "O") > 0


def test_limited_evaluation_accounts_for_pending_evictions():
    b = deserialize_board("XX--O---O")
    assert evaluate_limited_position(b, "X", "O", [0, 1], [4, 8]) == evaluate_control_score(b, "X", "O")
    # X's oldest piece (0) is about to leave and opens the diagonal for O
    b = deserialize_board("XX--O--XO")
    leaving = evaluate_limited_position(b, "X", "O", [0, 1, 7], [4, 8])
    assert leaving < evaluate_control_score(b, "X", "O")


def test_opportunity_scores():
    empty = [None] * 9
    # every line is still open on an otherwise empty board
    assert corner_opportunity_score(empty, 0, "X") == 8
    assert corner_opportunity_score(deserialize_board("-X-------"), 0, "X") == 8 + 3
    # taking the center leaves O four open lines
    assert opponent_opportunity_score(empty, 4, "X", "O") == 4
