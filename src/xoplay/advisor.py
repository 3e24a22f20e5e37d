"""
Move advisor: the full set of equally optimal moves for a board and mark.

The whole set is returned, not a single move. The computed opponent samples
uniformly among its members, and the coach accepts any member as correct.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from .game_basics import Mark, Outcome, apply_move, empty_board, evaluate, legal_moves
from .solver import score


@dataclass(frozen=True)
class MoveSet:
    moves: FrozenSet[int]
    score: Optional[int]

    def __contains__(self, index: object) -> bool:
        return index in self.moves

    def __len__(self) -> int:
        return len(self.moves)

    def ordered(self):
        return sorted(self.moves)

    def correction(self) -> int:
        """Deterministic member used when a suboptimal move must be replaced."""
        return min(self.moves)


def best_moves(board: Sequence[int], mark: Mark) -> MoveSet:
    board_t = tuple(board)
    mark = Mark(mark)
    best_score: Optional[int] = None
    moves = []
    for i in legal_moves(board_t):
        lst = list(board_t)
        lst[i] = int(mark)
        s = score(tuple(lst), 0, False, mark)
        if best_score is None or s > best_score:
            best_score = s
            moves = [i]
        elif s == best_score:
            moves.append(i)
    return MoveSet(frozenset(moves), best_score)


def pick_move(move_set: MoveSet, rng: np.random.Generator) -> int:
    """Uniform random choice among the optimal moves."""
    if not move_set.moves:
        raise ValueError("No candidate moves to pick from")
    candidates = move_set.ordered()
    return int(candidates[int(rng.integers(len(candidates)))])


def self_play(rng: np.random.Generator, starter: Mark = Mark.X) -> Tuple[List[int], Outcome]:
    """Play both sides from the empty board, each move sampled from best_moves."""
    board = empty_board()
    mark = Mark(starter)
    history: List[int] = []
    while not evaluate(board).is_terminal:
        mv = pick_move(best_moves(board, mark), rng)
        board = apply_move(board, mv, mark)
        history.append(mv)
        mark = mark.opponent
    return history, evaluate(board)
