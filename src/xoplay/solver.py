"""
Exhaustive minimax search, scored from the searching mark's perspective.
Scoring:
- A finished board scores 10 - depth when the searching mark has won,
  depth - 10 when the opponent has won, and 0 on a draw.
- Faster wins therefore score higher and slower losses score less negative.
- Plies alternate maximizing (searching mark to place) and minimizing
  (opponent to place) with no depth limit and no pruning.

Results are cached per (board, depth, maximizing, mark). The search is pure,
so the cache never changes an answer; it only avoids re-walking the 3x3 tree.
Larger boards would need a real transposition table keyed without depth.
"""
from functools import lru_cache

from .game_basics import Board, Mark, evaluate, legal_moves


def score(board: Board, depth: int, maximizing: bool, mark: Mark) -> int:
    return _score(tuple(board), depth, maximizing, Mark(mark))


@lru_cache(maxsize=None)
def _score(board_t: Board, depth: int, maximizing: bool, mark: Mark) -> int:
    winner = evaluate(board_t).winner
    if winner is mark:
        return 10 - depth
    if winner is mark.opponent:
        return depth - 10
    moves = legal_moves(board_t)
    if not moves:
        return 0
    to_place = mark if maximizing else mark.opponent
    child_scores = []
    for mv in moves:
        lst = list(board_t)
        lst[mv] = int(to_place)
        child_scores.append(_score(tuple(lst), depth + 1, not maximizing, mark))
    return max(child_scores) if maximizing else min(child_scores)
