"""xoplay package.

Tic-tac-toe rules, an exhaustive minimax opponent, a coach that corrects
suboptimal moves, and a two-client multiplayer protocol over a shared
document store.

Convenience imports are exposed for common workflows.
"""

from .advisor import MoveSet, best_moves
from .game_basics import Mark, Outcome, apply_move, evaluate
from .local_game import LocalGameController, Mode
from .multiplayer import MultiplayerController
from .store import InMemoryDocumentStore

__all__ = [
    "Mark",
    "Outcome",
    "apply_move",
    "evaluate",
    "MoveSet",
    "best_moves",
    "LocalGameController",
    "Mode",
    "MultiplayerController",
    "InMemoryDocumentStore",
]
