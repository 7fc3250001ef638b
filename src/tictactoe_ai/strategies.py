"""
The eight move-generation strategies the bandit chooses between.

Every strategy first takes an immediate win, then blocks an immediate loss,
and only then applies its own preferences.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from .bayesian import OpponentModel
from .features import corner_opportunity_score, opponent_opportunity_score
from .game_basics import CENTER, CLASSIC, CORNERS, LIMITED, NO_MOVE, SIDES, check_variant, empty_cells, opponent_of
from .limited import LimitedVariantSearch
from .mcts import MCTSPlanner
from .solver import ExactSearch
from .tactics import fork_move, limited_winning_move, winning_move

STRATEGY_NAMES = ('minimax', 'mcts', 'bayesian', 'aggressive', 'defensive', 'corners', 'center', 'random')

HARD_ADAPTIVE_RATE = 0.9
MEDIUM_ADAPTIVE_RATE = 0.5

CORNER_PREFERENCE = [0, 8, 2, 6]
OPPOSITE_CORNERS = [(0, 8), (2, 6)]


@dataclass
class StrategyToolkit:
    """Search components and randomness shared by all strategies."""

    exact: ExactSearch
    limited: LimitedVariantSearch
    mcts: MCTSPlanner
    opponent_model: OpponentModel
    rng: np.random.Generator


@dataclass
class MoveRequest:
    board: Sequence[Optional[str]]
    mark: str
    toolkit: StrategyToolkit
    variant: str = CLASSIC
    ai_history: Sequence[int] = ()
    opp_history: Sequence[int] = ()
    adaptive_rate: float = HARD_ADAPTIVE_RATE

    @property
    def opponent(self) -> str:
        return opponent_of(self.mark)

    def choice(self, cells: Sequence[int]) -> int:
        return cells[int(self.toolkit.rng.integers(len(cells)))]


def _minimax(req: MoveRequest) -> int:
    tk = req.toolkit
    if req.variant == LIMITED:
        return tk.limited.best_move(req.board, req.mark, req.ai_history, req.opp_history)
    return tk.exact.best_move(req.board, req.mark, tk.opponent_model, req.adaptive_rate, tk.rng)


def _mcts(req: MoveRequest) -> int:
    return req.toolkit.mcts.best_move(
        req.board, req.mark, variant=req.variant,
        ai_history=req.ai_history, opp_history=req.opp_history,
    )


def _bayesian(req: MoveRequest) -> int:
    counter = req.toolkit.opponent_model.counter_move(req.board)
    if counter is not None:
        return counter
    return _mcts(req)


def _aggressive(req: MoveRequest) -> int:
    board = req.board
    fork = fork_move(board, req.mark)
    if fork is not None:
        return fork
    if board[CENTER] is None:
        return CENTER
    corners = [c for c in CORNERS if board[c] is None]
    if corners:
        best_corner = corners[0]
        best_score: Optional[int] = None
        for corner in corners:
            score = corner_opportunity_score(board, corner, req.mark)
            if best_score is None or score > best_score:
                best_score = score
                best_corner = corner
        return best_corner
    sides = [s for s in SIDES if board[s] is None]
    if sides:
        return req.choice(sides)
    return req.choice(empty_cells(board))


def _defensive(req: MoveRequest) -> int:
    board = req.board
    opp_fork = fork_move(board, req.opponent)
    if opp_fork is not None:
        return opp_fork
    if board[CENTER] is None:
        return CENTER
    moves = empty_cells(board)
    best_move = moves[0]
    lowest: Optional[int] = None
    for move in moves:
        score = opponent_opportunity_score(board, move, req.mark, req.opponent)
        if lowest is None or score < lowest:
            lowest = score
            best_move = move
    return best_move


def _corners(req: MoveRequest) -> int:
    board = req.board
    for corner in CORNER_PREFERENCE:
        if board[corner] is None:
            return corner
    if board[CENTER] is None:
        return CENTER
    for side in SIDES:
        if board[side] is None:
            return side
    return empty_cells(board)[0]


def _center(req: MoveRequest) -> int:
    board = req.board
    if board[CENTER] is None:
        return CENTER
    for a, b in OPPOSITE_CORNERS:
        if board[a] == req.opponent and board[b] is None:
            return b
        if board[b] == req.opponent and board[a] is None:
            return a
    corners = [c for c in CORNERS if board[c] is None]
    if corners:
        return req.choice(corners)
    sides = [s for s in SIDES if board[s] is None]
    if sides:
        return req.choice(sides)
    return req.choice(empty_cells(board))


def _random(req: MoveRequest) -> int:
    return req.choice(empty_cells(req.board))


STRATEGIES: Dict[str, Callable[[MoveRequest], int]] = {
    'minimax': _minimax,
    'mcts': _mcts,
    'bayesian': _bayesian,
    'aggressive': _aggressive,
    'defensive': _defensive,
    'corners': _corners,
    'center': _center,
    'random': _random,
}


def play_strategy(
    name: str,
    board: Sequence[Optional[str]],
    mark: str,
    toolkit: StrategyToolkit,
    variant: str = CLASSIC,
    ai_history: Sequence[int] = (),
    opp_history: Sequence[int] = (),
    adaptive_rate: float = HARD_ADAPTIVE_RATE,
) -> int:
    try:
        strategy = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown strategy: {name!r}") from None
    check_variant(variant)
    if not empty_cells(board):
        return NO_MOVE

    opp = opponent_of(mark)
    if variant == LIMITED:
        win = limited_winning_move(board, mark, ai_history)
        block = limited_winning_move(board, opp, opp_history)
    else:
        win = winning_move(board, mark)
        block = winning_move(board, opp)
    if win is not None:
        return win
    if block is not None:
        return block

    req = MoveRequest(
        board=board,
        mark=mark,
        toolkit=toolkit,
        variant=variant,
        ai_history=ai_history,
        opp_history=opp_history,
        adaptive_rate=adaptive_rate,
    )
    return strategy(req)
