"""
Bayesian opponent model: learns P(move | board state) from observed moves.

States are keyed by their canonical (symmetry-reduced) serialization, so a
pattern learned in one orientation is recognized in all 8. Moves are carried
into the canonical orientation with the exact transform that produced the
canonical key and mapped back with its inverse.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from .schema import LoadResult, is_cell_index, is_number
from .symmetry import apply_action_transform, canonicalize, inverse_action_transform, is_canonical

LEARNING_RATE = 0.2
MIN_OBSERVATIONS = 2
HIGH_CONFIDENCE = 0.6
LOW_CONFIDENCE = 0.3

# strategic prior: center strongest, then corners, then edges
PRIOR_DISTRIBUTION = {
    0: 0.15, 1: 0.05, 2: 0.15,
    3: 0.05, 4: 0.4, 5: 0.05,
    6: 0.15, 7: 0.05, 8: 0.15,
}


@dataclass
class ConditionalProbability:
    board_state: str
    move_probabilities: Dict[int, float] = field(default_factory=dict)
    total_observations: int = 0

    def normalize(self) -> None:
        total = sum(self.move_probabilities.values())
        if total > 0:
            for move in self.move_probabilities:
                self.move_probabilities[move] /= total


class Prediction(NamedTuple):
    move: int
    confidence: float


class OpponentModel:
    def __init__(self, learning_rate: float = LEARNING_RATE, min_observations: int = MIN_OBSERVATIONS) -> None:
        self.learning_rate = learning_rate
        self.min_observations = min_observations
        self._table: Dict[str, ConditionalProbability] = {}

    def __len__(self) -> int:
        return len(self._table)

    def entry(self, board_state: str) -> Optional[ConditionalProbability]:
        return self._table.get(board_state)

    def observe(self, board_before: Sequence[Optional[str]], move: int) -> ConditionalProbability:
        """Record that the opponent played `move` on `board_before`."""
        if not is_cell_index(move) or board_before[move] is not None:
            raise ValueError(f"Observed move {move!r} is not an empty cell")
        state, op = canonicalize(board_before)
        canonical_move = apply_action_transform(move, op)

        entry = self._table.get(state)
        if entry is None:
            entry = ConditionalProbability(
                board_state=state,
                move_probabilities={i: PRIOR_DISTRIBUTION[i] for i in range(9) if state[i] == '-'},
            )
            self._table[state] = entry

        current = entry.move_probabilities.get(canonical_move, 0.0)
        entry.move_probabilities[canonical_move] = current * (1 - self.learning_rate) + self.learning_rate
        entry.normalize()
        entry.total_observations += 1
        return entry

    def predict(self, board: Sequence[Optional[str]]) -> Optional[Prediction]:
        state, op = canonicalize(board)
        entry = self._table.get(state)
        if entry is None or entry.total_observations < self.min_observations:
            return None
        best_move = -1
        highest = 0.0
        for canonical_move in sorted(entry.move_probabilities):
            probability = entry.move_probabilities[canonical_move]
            actual = inverse_action_transform(canonical_move, op)
            if board[actual] is None and probability > highest:
                highest = probability
                best_move = actual
        if best_move == -1:
            return None
        return Prediction(best_move, highest)

    def counter_move(self, board: Sequence[Optional[str]]) -> Optional[int]:
        """Take the cell the opponent is expected to play next, when confident enough."""
        prediction = self.predict(board)
        if prediction is None:
            return None
        if prediction.confidence > HIGH_CONFIDENCE:
            return prediction.move
        # moderate confidence still preempts; other heuristics run after this one anyway
        return prediction.move if prediction.confidence > LOW_CONFIDENCE else None

    def reset(self) -> None:
        self._table.clear()

    def stats(self) -> Dict[str, Any]:
        details = [
            {
                'boardState': state,
                'observations': entry.total_observations,
                'probabilities': sorted(
                    ({'move': move, 'probability': prob} for move, prob in entry.move_probabilities.items()),
                    key=lambda p: p['probability'],
                    reverse=True,
                ),
            }
            for state, entry in self._table.items()
        ]
        details.sort(key=lambda d: d['observations'], reverse=True)
        return {'totalPatterns': len(self._table), 'patternDetails': details}

    def load(self, blob: Any) -> LoadResult:
        """Merge a `stats()` snapshot into the model; malformed entries are skipped."""
        if not isinstance(blob, dict) or not isinstance(blob.get('patternDetails'), list):
            return LoadResult(ok=False, error="missing patternDetails list")
        loaded = skipped = 0
        for pattern in blob['patternDetails']:
            entry = _entry_from_blob(pattern)
            if entry is None:
                skipped += 1
                continue
            self._table[entry.board_state] = entry
            loaded += 1
        return LoadResult(ok=True, loaded=loaded, skipped=skipped)


def _entry_from_blob(pattern: Any) -> Optional[ConditionalProbability]:
    if not isinstance(pattern, dict):
        return None
    state = pattern.get('boardState')
    if not isinstance(state, str) or len(state) != 9 or any(c not in "XO-" for c in state):
        return None
    if not is_canonical(state):
        return None
    probabilities = pattern.get('probabilities')
    if not isinstance(probabilities, list):
        return None

    moves: Dict[int, float] = {}
    for item in probabilities:
        if not isinstance(item, dict):
            continue
        move = item.get('move')
        probability = item.get('probability')
        if is_cell_index(move) and is_number(probability) and probability >= 0 and state[move] == '-':
            moves[move] = float(probability)
    if not moves or sum(moves.values()) <= 0:
        return None

    observations = pattern.get('observations')
    total = max(1, int(observations)) if is_number(observations) else 1
    entry = ConditionalProbability(board_state=state, move_probabilities=moves, total_observations=total)
    entry.normalize()
    return entry


def top_moves(entry: ConditionalProbability, k: int = 3) -> List[Prediction]:
    ranked = sorted(entry.move_probabilities.items(), key=lambda kv: (-kv[1], kv[0]))
    return [Prediction(move, prob) for move, prob in ranked[:k]]
