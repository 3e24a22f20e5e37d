"""
Tactics and simple motifs: immediate wins/blocks and forks.
Notes:
- The coach uses these motifs to name what a suboptimal move got wrong.
- Search decides whether a move is optimal; motifs only label the mistake.
"""
from typing import List, Sequence

from .game_basics import EMPTY, Mark, get_winner

MISSED_WIN = "missed_win"
MISSED_BLOCK = "missed_block"
ALLOWED_FORK = "allowed_fork"
SUBOPTIMAL = "suboptimal"


def immediate_winning_moves(board: Sequence[int], player: Mark) -> List[int]:
    wins: List[int] = []
    for i, v in enumerate(board):
        if v != EMPTY:
            continue
        b = list(board)
        b[i] = int(player)
        if get_winner(b) == player:
            wins.append(i)
    return wins


def fork_moves(board: Sequence[int], player: Mark) -> List[int]:
    forks: List[int] = []
    for i, v in enumerate(board):
        if v != EMPTY:
            continue
        b = list(board)
        b[i] = int(player)
        if len(immediate_winning_moves(b, player)) >= 2:
            forks.append(i)
    return forks


def classify_mistake(board: Sequence[int], player: Mark, move: int) -> str:
    player = Mark(player)
    wins = immediate_winning_moves(board, player)
    if wins and move not in wins:
        return MISSED_WIN
    threats = immediate_winning_moves(board, player.opponent)
    if threats and move not in threats:
        return MISSED_BLOCK
    b = list(board)
    b[move] = int(player)
    if fork_moves(b, player.opponent):
        return ALLOWED_FORK
    return SUBOPTIMAL
