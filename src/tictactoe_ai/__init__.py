"""tictactoe_ai package.

Adaptive tic-tac-toe opponent: exact and limited-variant search, MCTS, a
Bayesian opponent model and a Thompson-sampling strategy bandit, with
persistence of what it learns.

Convenience imports are exposed for common workflows.
"""

from .config import EngineConfig
from .engine import AdaptiveEngine
from .game_basics import GameState, IllegalMoveError
from .store import FileBlobStore, LearningStore, MemoryBlobStore

__all__ = [
    "AdaptiveEngine",
    "EngineConfig",
    "GameState",
    "IllegalMoveError",
    "LearningStore",
    "MemoryBlobStore",
    "FileBlobStore",
]
