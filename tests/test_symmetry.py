import pytest

from tictactoe_ai.game_basics import deserialize_board, serialize_board
from tictactoe_ai.symmetry import (
    ALL_SYMS,
    apply_action_transform,
    canonical_form,
    canonicalize,
    inverse_action_transform,
    is_canonical,
    orbit_size,
    transform_board,
)


def test_corner_openings_share_canonical_form():
    forms = set()
    for corner in (0, 2, 6, 8):
        b = [None] * 9
        b[corner] = "X"
        forms.add(canonical_form(b))
    assert len(forms) == 1


def test_canonicalize_returns_transform_that_produces_key():
    b = deserialize_board("-X--O---X")
    key, op = canonicalize(b)
    assert serialize_board(transform_board(b, op)) == key
    assert is_canonical(key)


def test_moves_follow_board_into_canonical_orientation():
    b = deserialize_board("X---O----")
    key, op = canonicalize(b)
    canon = deserialize_board(key)
    for move in range(9):
        if b[move] is None:
            cm = apply_action_transform(move, op)
            assert canon[cm] is None
            assert inverse_action_transform(cm, op) == move


@pytest.mark.parametrize("op", ALL_SYMS)
def test_transform_and_index_map_agree(op):
    b = deserialize_board("XO-X-O--X")
    t = transform_board(b, op)
    for i in range(9):
        assert t[apply_action_transform(i, op)] == b[i]


def test_orbit_sizes():
    assert orbit_size([None] * 9) == 1
    assert orbit_size(deserialize_board("----X----")) == 1
    assert orbit_size(deserialize_board("X--------")) == 4
    assert orbit_size(deserialize_board("XO-------")) == 8


def test_unknown_transform_rejected():
    with pytest.raises(ValueError):
        transform_board([None] * 9, "rot45")
