"""
Multiplayer session controller: two clients, one shared session document.

Each client keeps a cache of the session document and replaces it wholesale on
every change notification (last writer wins). A client may only write a move
while its cache says it holds the turn, so the two writers never overlap under
normal play. Writes are unconditional merges; there is no compare-and-swap.

Notifications are queued and reduced one at a time by whichever thread holds
the controller lock, never in the middle of a local operation. Store callbacks
never wait for that lock.
"""
from __future__ import annotations

import logging
import queue
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional

import numpy as np

from .config import make_rng
from .document import decode, join_fields, move_fields, new_session_document, PLAYER_O
from .errors import InvalidMove, SessionFull, SessionNotFound, StoreUnavailable
from .game_basics import Board, Mark, Outcome, apply_move, empty_board, evaluate
from .store import Document, DocumentStore, Unsubscribe


class SessionPhase(Enum):
    UNINITIALIZED = "uninitialized"
    HOSTING_LOBBY = "hosting_lobby"
    WAITING_FOR_OPPONENT = "waiting_for_opponent"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass
class MultiplayerSession:
    session_id: str
    mark: Mark
    board: Board = field(default_factory=empty_board)
    turn: Optional[Mark] = Mark.X
    winner: Optional[Outcome] = None
    opponent_present: bool = False
    phase: SessionPhase = SessionPhase.UNINITIALIZED


Listener = Callable[[MultiplayerSession], None]


def is_session_code(code: str) -> bool:
    return len(code) == 6 and all(c in "0123456789" for c in code)


def generate_session_id(rng: np.random.Generator) -> str:
    return str(int(rng.integers(100000, 1000000)))


def phase_for(session: MultiplayerSession) -> SessionPhase:
    if session.winner is not None:
        return SessionPhase.FINISHED
    if not session.opponent_present:
        return SessionPhase.HOSTING_LOBBY
    if session.turn is session.mark:
        return SessionPhase.ACTIVE
    return SessionPhase.WAITING_FOR_OPPONENT


class MultiplayerController:
    def __init__(
        self,
        store: DocumentStore,
        client_id: Optional[str] = None,
        rng: Optional[np.random.Generator] = None,
        listener: Optional[Listener] = None,
    ):
        self.store = store
        self.client_id = client_id or uuid.uuid4().hex
        self.rng = rng if rng is not None else make_rng()
        self._listener = listener
        self._lock = threading.RLock()
        self._inbox: "queue.Queue[tuple[str, Document]]" = queue.Queue()
        self._depth = 0
        self._unsubscribe: Optional[Unsubscribe] = None
        self.session: Optional[MultiplayerSession] = None

    @property
    def phase(self) -> SessionPhase:
        return self.session.phase if self.session is not None else SessionPhase.UNINITIALIZED

    # -- session surface -----------------------------------------------------

    def create_session(self) -> str:
        """Host a new game as X and return its 6-digit code."""
        with self._operation():
            code = generate_session_id(self.rng)
            self.store.create(code, new_session_document(self.client_id))
            unsubscribe = self.store.subscribe(code, self.on_remote_update)
            self._teardown()
            self._unsubscribe = unsubscribe
            self.session = MultiplayerSession(code, Mark.X, phase=SessionPhase.HOSTING_LOBBY)
            logging.info("created session %s as %s", code, Mark.X.name)
            self._notify()
            return code

    def join_session(self, code: str) -> MultiplayerSession:
        """Join a hosted game as O.

        Raises SessionNotFound for malformed or unknown codes (SessionFull when
        another guest already took the seat). Local state is unchanged on failure.
        """
        code = (code or "").strip()
        if not is_session_code(code):
            raise SessionNotFound(code)
        with self._operation():
            document = self.store.read(code)
            if document is None:
                raise SessionNotFound(code)
            guest = document.get(PLAYER_O)
            if guest is not None and guest != self.client_id:
                raise SessionFull(code)
            snap = decode(document)
            self.store.merge(code, join_fields(self.client_id))
            unsubscribe = self.store.subscribe(code, self.on_remote_update)
            self._teardown()
            self._unsubscribe = unsubscribe
            session = MultiplayerSession(
                code,
                Mark.O,
                board=snap.board,
                turn=snap.turn,
                winner=snap.winner,
                opponent_present=True,
            )
            session.phase = phase_for(session)
            self.session = session
            logging.info("joined session %s as %s", code, Mark.O.name)
            self._notify()
            return session

    def quit(self) -> None:
        with self._lock:
            if self.session is not None:
                logging.info("leaving session %s", self.session.session_id)
            self._teardown()
            self.session = None

    # -- moves and notifications --------------------------------------------

    def submit_move(self, index: int) -> bool:
        """Write this client's move. Returns False when the move was rejected locally.

        StoreUnavailable propagates with the cached state left as it was.
        """
        with self._operation():
            s = self.session
            if s is None or s.phase is not SessionPhase.ACTIVE or s.turn is not s.mark:
                logging.debug("ignored move %r: not this client's turn", index)
                return False
            try:
                board = apply_move(s.board, index, s.mark)
            except InvalidMove as e:
                logging.debug("ignored move: %s", e)
                return False
            outcome = evaluate(board)
            try:
                self.store.merge(s.session_id, move_fields(board, outcome, s.mark.opponent))
            except StoreUnavailable:
                logging.warning("move %d in session %s not written: store unavailable", index, s.session_id)
                raise
            s.board = board
            s.turn = None if outcome.is_terminal else s.mark.opponent
            s.winner = outcome if outcome.is_terminal else None
            s.phase = phase_for(s)
            self._notify()
            return True

    def on_remote_update(self, session_id: str, document: Document) -> None:
        """Store callback: queue the snapshot and reduce it when no operation is running."""
        self._inbox.put((session_id, document))
        self._drain()

    # -- internals -----------------------------------------------------------

    @contextmanager
    def _operation(self) -> Iterator[None]:
        try:
            with self._lock:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
        finally:
            self._drain()

    def _drain(self) -> None:
        # Never block on the lock: a notifying thread may hold store or peer
        # state. Whoever holds the lock drains, and re-checks after releasing.
        while self._lock.acquire(blocking=False):
            try:
                if self._depth:
                    return
                while True:
                    try:
                        session_id, document = self._inbox.get_nowait()
                    except queue.Empty:
                        break
                    self._reduce(session_id, document)
            finally:
                self._lock.release()
            if self._inbox.empty():
                return

    def _reduce(self, session_id: str, document: Document) -> None:
        s = self.session
        if s is None or session_id != s.session_id:
            logging.debug("dropping update for stale session %s", session_id)
            return
        try:
            snap = decode(document)
        except ValueError as e:
            logging.warning("ignoring malformed document for session %s: %s", session_id, e)
            return
        s.board = snap.board
        s.turn = snap.turn
        s.winner = snap.winner
        s.opponent_present = snap.opponent_present
        previous = s.phase
        s.phase = phase_for(s)
        if s.phase is not previous:
            logging.debug("session %s: %s -> %s", session_id, previous.value, s.phase.value)
        self._notify()

    def _teardown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _notify(self) -> None:
        if self._listener is not None and self.session is not None:
            self._listener(self.session)
