"""
Local game controller: one game against the computed opponent, optionally coached.

Phases:
    IDLE -> PLAYER_TO_MOVE | OPPONENT_THINKING
    PLAYER_TO_MOVE -> OPPONENT_THINKING | FINISHED                  (standard)
    PLAYER_TO_MOVE -> COACHING_CHECK -> OPPONENT_THINKING | FINISHED (learning, optimal move)
    PLAYER_TO_MOVE -> COACHING_CHECK -> COACHING_CORRECTING -> ...  (learning, mistake)
    OPPONENT_THINKING -> PLAYER_TO_MOVE | FINISHED

Malformed input (bad index, occupied cell, wrong turn, inactive game) is a no-op.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .advisor import MoveSet, best_moves, pick_move
from .config import GameConfig, make_rng
from .errors import InvalidMove
from .game_basics import Board, Mark, Outcome, apply_move, empty_board, evaluate
from .scheduling import Scheduler, ThreadScheduler
from .tactics import classify_mistake


class Mode(Enum):
    STANDARD = "standard"
    LEARNING = "learning"


class Phase(Enum):
    IDLE = "idle"
    PLAYER_TO_MOVE = "player_to_move"
    OPPONENT_THINKING = "opponent_thinking"
    COACHING_CHECK = "coaching_check"
    COACHING_CORRECTING = "coaching_correcting"
    FINISHED = "finished"


@dataclass(frozen=True)
class CoachFeedback:
    played: int
    accepted: bool
    optimal: MoveSet
    correction: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class GameSession:
    board: Board = field(default_factory=empty_board)
    turn: Mark = Mark.X
    human_mark: Mark = Mark.X
    starter: Mark = Mark.X
    active: bool = False
    mode: Mode = Mode.STANDARD
    phase: Phase = Phase.IDLE
    outcome: Outcome = Outcome.IN_PROGRESS
    feedback: Optional[CoachFeedback] = None
    good_moves: int = 0
    mistakes: int = 0

    @property
    def opponent_mark(self) -> Mark:
        return self.human_mark.opponent

    @property
    def is_human_turn(self) -> bool:
        return self.active and self.turn is self.human_mark and not self.outcome.is_terminal


Advisor = Callable[[Board, Mark], MoveSet]
Listener = Callable[[GameSession], None]


class LocalGameController:
    """Drives a single local game and owns its GameSession."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
        advisor: Advisor = best_moves,
        listener: Optional[Listener] = None,
    ):
        self.config = config if config is not None else GameConfig.from_env()
        self.scheduler = scheduler if scheduler is not None else ThreadScheduler()
        self.rng = rng if rng is not None else make_rng(self.config.seed)
        self._advisor = advisor
        self._listener = listener
        self._lock = threading.RLock()
        self._generation = 0
        self._pending = None
        self.session = GameSession()

    # -- lifecycle -----------------------------------------------------------

    def start(
        self,
        mode: Mode = Mode.STANDARD,
        human_mark: Mark = Mark.X,
        starter: Optional[Mark] = None,
    ) -> GameSession:
        """Reset the board and begin a new game.

        Standard mode: the human plays X and the starting mark is picked
        uniformly at random; `human_mark` and `starter` are ignored. Learning
        mode uses the caller's marks (starter X when omitted).
        """
        mode = Mode(mode)
        human_mark = Mark(human_mark)
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            if mode is Mode.STANDARD:
                human_mark = Mark.X
                starter = Mark.X if self.rng.random() < 0.5 else Mark.O
            else:
                starter = Mark(starter) if starter is not None else Mark.X
            self.session = GameSession(
                turn=starter,
                human_mark=human_mark,
                starter=starter,
                active=True,
                mode=mode,
            )
            logging.debug(
                "game %d started: mode=%s human=%s starter=%s",
                self._generation, mode.value, human_mark.name, starter.name,
            )
            if starter is human_mark:
                self.session.phase = Phase.PLAYER_TO_MOVE
                self._notify()
            else:
                self._schedule_opponent()
            return self.session

    def restart(self) -> GameSession:
        s = self.session
        return self.start(s.mode, s.human_mark, s.starter)

    def stop(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            self.session.active = False
            self.session.phase = Phase.IDLE
            self._notify()

    # -- moves ---------------------------------------------------------------

    def submit_move(self, index: int) -> bool:
        """Play the human's move. Returns False when the input was ignored."""
        with self._lock:
            s = self.session
            if not s.is_human_turn or s.phase is not Phase.PLAYER_TO_MOVE:
                logging.debug("ignored move %r: not accepting input (phase=%s)", index, s.phase.value)
                return False
            try:
                board = apply_move(s.board, index, s.human_mark)
            except InvalidMove as e:
                logging.debug("ignored move: %s", e)
                return False
            if s.mode is Mode.LEARNING:
                return self._coach(index, board)
            self._commit(board, s.human_mark)
            return True

    def opponent_move(self) -> Optional[int]:
        with self._lock:
            s = self.session
            if not s.active or s.outcome.is_terminal or s.turn is s.human_mark:
                return None
            optimal = self._advisor(s.board, s.turn)
            if not optimal.moves:
                return None
            pick = pick_move(optimal, self.rng)
            logging.debug("opponent %s plays %d from %s", s.turn.name, pick, optimal.ordered())
            self._commit(apply_move(s.board, pick, s.turn), s.turn)
            return pick

    # -- internals -----------------------------------------------------------

    def _coach(self, index: int, board: Board) -> bool:
        s = self.session
        s.phase = Phase.COACHING_CHECK
        optimal = self._advisor(s.board, s.human_mark)
        if index in optimal:
            s.feedback = CoachFeedback(index, True, optimal)
            s.good_moves += 1
            self._commit(board, s.human_mark)
            return True
        correct = optimal.correction()
        s.feedback = CoachFeedback(
            index,
            False,
            optimal,
            correction=correct,
            reason=classify_mistake(s.board, s.human_mark, index),
        )
        s.mistakes += 1
        s.active = False
        s.phase = Phase.COACHING_CORRECTING
        logging.debug("coach: %d is %s, correcting to %d", index, s.feedback.reason, correct)
        self._notify()
        self._pending = self.scheduler.call_later(
            self.config.coach_delay,
            self._guarded(self._generation, lambda: self._apply_correction(correct)),
        )
        return True

    def _apply_correction(self, index: int) -> None:
        s = self.session
        if s.phase is not Phase.COACHING_CORRECTING:
            return
        s.active = True
        self._commit(apply_move(s.board, index, s.human_mark), s.human_mark)

    def _commit(self, board: Board, mark: Mark) -> None:
        s = self.session
        s.board = board
        s.outcome = evaluate(board)
        if s.outcome.is_terminal:
            s.active = False
            s.phase = Phase.FINISHED
            logging.debug("game %d finished: %s", self._generation, s.outcome.value)
            self._notify()
            return
        s.turn = mark.opponent
        if s.turn is s.human_mark:
            s.phase = Phase.PLAYER_TO_MOVE
            self._notify()
        else:
            self._schedule_opponent()

    def _schedule_opponent(self) -> None:
        self.session.phase = Phase.OPPONENT_THINKING
        self._notify()
        self._pending = self.scheduler.call_later(
            self.config.ai_delay,
            self._guarded(self._generation, self.opponent_move),
        )

    def _guarded(self, generation: int, fn: Callable[[], object]) -> Callable[[], None]:
        def run() -> None:
            with self._lock:
                if generation != self._generation:
                    return
                fn()
        return run

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.session)
