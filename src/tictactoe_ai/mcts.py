"""
Monte Carlo Tree Search with UCB1 selection, bounded by an iteration budget
and a wall-clock budget (whichever runs out first).

The tree is an arena: nodes live in one list and refer to their parent and
children by index, so there are no ownership cycles. The whole arena is
discarded when a search returns.

Statistics convention: a node's `wins` are credited to the player who moved
into it, so a parent's UCB1 choice always maximizes for the parent's mover.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .game_basics import (
    CLASSIC,
    LIMITED,
    NO_MOVE,
    Board,
    apply_move,
    check_variant,
    empty_cells,
    get_winner,
    opponent_of,
)
from .tactics import limited_winning_move, winning_move

EXPLORATION = math.sqrt(2)
DEFAULT_ITERATIONS = 1000
DEFAULT_TIME_MS = 500
PLAYOUT_PLY_CAP = 60


@dataclass
class SearchNode:
    board: Board
    mark_to_move: str
    histories: Dict[str, List[int]]
    parent: Optional[int] = None
    move: Optional[int] = None
    untried: List[int] = field(default_factory=list)
    children: List[int] = field(default_factory=list)
    visits: int = 0
    wins: float = 0.0


@dataclass
class MoveStat:
    move: int
    visits: int
    wins: float
    win_rate: float


@dataclass
class SearchReport:
    iterations_completed: int
    time_spent_ms: float
    total_simulations: int
    move_stats: List[MoveStat]


def _pick(rng: np.random.Generator, seq: Sequence[int]) -> int:
    return seq[int(rng.integers(len(seq)))]


class MCTSPlanner:
    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        iterations: int = DEFAULT_ITERATIONS,
        time_ms: float = DEFAULT_TIME_MS,
        exploration: float = EXPLORATION,
        playout_cap: int = PLAYOUT_PLY_CAP,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()
        self.iterations = iterations
        self.time_ms = time_ms
        self.exploration = exploration
        self.playout_cap = playout_cap

    def best_move(
        self,
        board: Sequence[Optional[str]],
        mark: str,
        iterations: Optional[int] = None,
        time_ms: Optional[float] = None,
        variant: str = CLASSIC,
        ai_history: Sequence[int] = (),
        opp_history: Sequence[int] = (),
    ) -> int:
        check_variant(variant)
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

        empties = empty_cells(board)
        if not empties:
            return NO_MOVE
        if len(empties) == 1:
            return empties[0]

        nodes, _, _ = self._search(board, mark, iterations, time_ms, variant, ai_history, opp_history)
        root = nodes[0]
        best_move = NO_MOVE
        most_visits = -1
        for idx in root.children:
            child = nodes[idx]
            if child.visits > most_visits:
                most_visits = child.visits
                best_move = child.move  # type: ignore[assignment]
        return best_move

    def search_stats(
        self,
        board: Sequence[Optional[str]],
        mark: str,
        iterations: Optional[int] = None,
        time_ms: Optional[float] = None,
        variant: str = CLASSIC,
        ai_history: Sequence[int] = (),
        opp_history: Sequence[int] = (),
    ) -> SearchReport:
        """Run a search and report per-root-move statistics, most visited first."""
        check_variant(variant)
        nodes, done, elapsed_ms = self._search(
            board, mark, iterations, time_ms, variant, ai_history, opp_history
        )
        stats = [
            MoveStat(
                move=nodes[i].move,  # type: ignore[arg-type]
                visits=nodes[i].visits,
                wins=nodes[i].wins,
                win_rate=nodes[i].wins / nodes[i].visits if nodes[i].visits else 0.0,
            )
            for i in nodes[0].children
        ]
        stats.sort(key=lambda s: s.visits, reverse=True)
        return SearchReport(
            iterations_completed=done,
            time_spent_ms=elapsed_ms,
            total_simulations=nodes[0].visits,
            move_stats=stats,
        )

    def _search(self, board, mark, iterations, time_ms, variant, ai_history, opp_history):
        budget = self.iterations if iterations is None else iterations
        limit_ms = self.time_ms if time_ms is None else time_ms
        histories = {mark: list(ai_history), opponent_of(mark): list(opp_history)}
        nodes = [self._make_node(list(board), mark, histories, None, None, variant)]

        start = time.perf_counter()
        done = 0
        while done < budget and (time.perf_counter() - start) * 1000.0 < limit_ms:
            idx = 0
            while not nodes[idx].untried and nodes[idx].children:
                idx = self._select(nodes, idx)
            if nodes[idx].untried:
                idx = self._expand(nodes, idx, variant)
            result = self._simulate(nodes[idx], variant)
            self._backpropagate(nodes, idx, result)
            done += 1
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return nodes, done, elapsed_ms

    def _make_node(self, board, mark_to_move, histories, parent, move, variant) -> SearchNode:
        terminal = get_winner(board) is not None
        untried = [] if terminal else empty_cells(board)
        return SearchNode(
            board=board,
            mark_to_move=mark_to_move,
            histories=histories if variant == LIMITED else {},
            parent=parent,
            move=move,
            untried=untried,
        )

    def _select(self, nodes: List[SearchNode], idx: int) -> int:
        parent = nodes[idx]
        log_n = math.log(parent.visits)
        best_idx = parent.children[0]
        best_score: Optional[float] = None
        for c in parent.children:
            child = nodes[c]
            score = child.wins / child.visits + self.exploration * math.sqrt(log_n / child.visits)
            if best_score is None or score > best_score:
                best_score = score
                best_idx = c
        return best_idx

    def _expand(self, nodes: List[SearchNode], idx: int, variant: str) -> int:
        node = nodes[idx]
        move = node.untried.pop(int(self.rng.integers(len(node.untried))))
        mover = node.mark_to_move
        histories = {k: list(v) for k, v in node.histories.items()}
        next_board, mover_history = apply_move(
            node.board, move, mover, histories.get(mover, []), variant
        )
        if variant == LIMITED:
            histories[mover] = mover_history
        child = self._make_node(next_board, opponent_of(mover), histories, idx, move, variant)
        nodes.append(child)
        child_idx = len(nodes) - 1
        node.children.append(child_idx)
        return child_idx

    def _simulate(self, node: SearchNode, variant: str) -> float:
        """Uniform random playout; 1/0/0.5 from the point of view of the node's mover."""
        board = list(node.board)
        histories = {k: list(v) for k, v in node.histories.items()}
        mover = node.mark_to_move
        winner = get_winner(board)
        plies = 0
        while winner is None:
            moves = empty_cells(board)
            if not moves or plies >= self.playout_cap:
                break
            move = _pick(self.rng, moves)
            board, history = apply_move(board, move, mover, histories.get(mover, []), variant)
            if variant == LIMITED:
                histories[mover] = history
            winner = get_winner(board)
            mover = opponent_of(mover)
            plies += 1
        if winner is None:
            return 0.5
        return 1.0 if winner == node.mark_to_move else 0.0

    def _backpropagate(self, nodes: List[SearchNode], idx: int, result: float) -> None:
        leaf_mover = nodes[idx].mark_to_move
        current: Optional[int] = idx
        while current is not None:
            node = nodes[current]
            node.visits += 1
            # credit goes to whoever moved into this node
            node.wins += (1.0 - result) if node.mark_to_move == leaf_mover else result
            current = node.parent
