"""
Symmetry and canonicalization for Tic-Tac-Toe boards.

- There are 8 symmetries (the dihedral group of the square).
- A board's canonical form is the lexicographically smallest serialization
  among its 8 images; equivalent boards share one canonical key.
- Moves transform with the board; index maps are precomputed so a move can be
  carried into the canonical orientation and back with the exact permutation
  that produced the canonical form.
"""
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from .game_basics import serialize_board

ALL_SYMS = ['id', 'rot90', 'rot180', 'rot270', 'hflip', 'vflip', 'd1', 'd2']

# transformed[i] = board[PERMUTATIONS[kind][i]]
PERMUTATIONS = {
    'id': [0, 1, 2, 3, 4, 5, 6, 7, 8],
    'rot90': [6, 3, 0, 7, 4, 1, 8, 5, 2],
    'rot180': [8, 7, 6, 5, 4, 3, 2, 1, 0],
    'rot270': [2, 5, 8, 1, 4, 7, 0, 3, 6],
    'hflip': [2, 1, 0, 5, 4, 3, 8, 7, 6],
    'vflip': [6, 7, 8, 3, 4, 5, 0, 1, 2],
    'd1': [0, 3, 6, 1, 4, 7, 2, 5, 8],
    'd2': [8, 5, 2, 7, 4, 1, 6, 3, 0],
}


def transform_board(board: Sequence[Optional[str]], kind: str) -> List[Optional[str]]:
    try:
        perm = PERMUTATIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown transformation: {kind}") from None
    return [board[j] for j in perm]


def sym_index_map(kind: str) -> List[int]:
    """Where each source cell lands after applying `kind`."""
    perm = PERMUTATIONS[kind]
    mapping = [0] * 9
    for dest, src in enumerate(perm):
        mapping[src] = dest
    return mapping


SYMM_INDEX_MAPS = {k: sym_index_map(k) for k in ALL_SYMS}


def apply_action_transform(action: int, kind: str) -> int:
    return SYMM_INDEX_MAPS[kind][action]


def inverse_action_transform(action: int, kind: str) -> int:
    return PERMUTATIONS[kind][action]


@lru_cache(maxsize=4096)
def _canonical_of(board_str: str) -> Tuple[str, str]:
    images = []
    for k in ALL_SYMS:
        perm = PERMUTATIONS[k]
        images.append((''.join(board_str[j] for j in perm), k))
    return min(images, key=lambda x: x[0])


def canonicalize(board: Sequence[Optional[str]]) -> Tuple[str, str]:
    """Return (canonical string, transform that produced it)."""
    return _canonical_of(serialize_board(board))


def canonical_form(board: Sequence[Optional[str]]) -> str:
    return canonicalize(board)[0]


def orbit_size(board: Sequence[Optional[str]]) -> int:
    s = serialize_board(board)
    return len({''.join(s[j] for j in PERMUTATIONS[k]) for k in ALL_SYMS})


def is_canonical(board_str: str) -> bool:
    return _canonical_of(board_str)[0] == board_str
