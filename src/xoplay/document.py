"""
Session document fields as stored in the shared document store.

    board       9-char "012" digit string
    turn        "X" | "O" | None (None once the game is over)
    winner      "X" | "O" | "draw" | None
    player_x    host client id
    player_o    guest client id, None until someone joins
    created_at  ISO-8601 UTC timestamp
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from .errors import InvalidBoard
from .game_basics import Board, Mark, Outcome, deserialize_board, empty_board, serialize_board

BOARD = "board"
TURN = "turn"
WINNER = "winner"
PLAYER_X = "player_x"
PLAYER_O = "player_o"
CREATED_AT = "created_at"

_WINNER_CODES = {Outcome.X_WINS: "X", Outcome.O_WINS: "O", Outcome.DRAW: "draw"}
_WINNER_FROM_CODE = {v: k for k, v in _WINNER_CODES.items()}


@dataclass(frozen=True)
class SessionSnapshot:
    board: Board
    turn: Optional[Mark]
    winner: Optional[Outcome]
    opponent_present: bool


def new_session_document(host_id: str) -> Dict[str, Any]:
    return {
        BOARD: serialize_board(empty_board()),
        TURN: Mark.X.name,
        WINNER: None,
        PLAYER_X: host_id,
        PLAYER_O: None,
        CREATED_AT: datetime.now(timezone.utc).isoformat(),
    }


def join_fields(guest_id: str) -> Dict[str, Any]:
    return {PLAYER_O: guest_id}


def move_fields(board: Sequence[int], outcome: Outcome, next_turn: Mark) -> Dict[str, Any]:
    terminal = outcome.is_terminal
    return {
        BOARD: serialize_board(board),
        TURN: None if terminal else Mark(next_turn).name,
        WINNER: _WINNER_CODES[outcome] if terminal else None,
    }


def decode(document: Dict[str, Any]) -> SessionSnapshot:
    raw_board = document.get(BOARD) or ""
    if len(raw_board) != 9 or any(c not in "012" for c in raw_board):
        raise InvalidBoard(f"Malformed board field: {raw_board!r}")
    raw_turn = document.get(TURN)
    raw_winner = document.get(WINNER)
    if raw_winner is not None and raw_winner not in _WINNER_FROM_CODE:
        raise InvalidBoard(f"Malformed winner field: {raw_winner!r}")
    return SessionSnapshot(
        board=deserialize_board(raw_board),
        turn=Mark.parse(raw_turn) if raw_turn else None,
        winner=_WINNER_FROM_CODE.get(raw_winner) if raw_winner is not None else None,
        opponent_present=document.get(PLAYER_O) is not None,
    )
