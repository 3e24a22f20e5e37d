import threading

import numpy as np
import pytest

from conftest import FixedRng
from xoplay.advisor import MoveSet, best_moves
from xoplay.config import GameConfig
from xoplay.game_basics import EMPTY, Mark, Outcome, empty_board, legal_moves
from xoplay.local_game import LocalGameController, Mode, Phase
from xoplay.scheduling import ImmediateScheduler, ThreadScheduler
from xoplay.tactics import SUBOPTIMAL


def coach_prefers_2_or_4(board, mark):
    if mark is Mark.X:
        return MoveSet(frozenset({2, 4}), 0)
    return best_moves(board, mark)


@pytest.fixture
def human_first(config, scheduler):
    c = LocalGameController(config=config, scheduler=scheduler, rng=FixedRng(random_value=0.1))
    c.start(Mode.STANDARD)
    return c


def test_standard_start_with_human_to_move(human_first):
    s = human_first.session
    assert s.phase is Phase.PLAYER_TO_MOVE
    assert s.turn is Mark.X and s.human_mark is Mark.X
    assert s.active
    assert s.board == empty_board()


def test_standard_move_then_opponent_replies(human_first, scheduler):
    c = human_first
    assert c.submit_move(4)
    assert c.session.phase is Phase.OPPONENT_THINKING
    assert scheduler.waiting == 1
    assert scheduler.pending[0].delay == 0.8
    # input is locked while the opponent thinks
    assert not c.submit_move(0)
    scheduler.run_pending()
    s = c.session
    assert s.board[0] == Mark.O  # first corner of {0, 2, 6, 8}
    assert s.phase is Phase.PLAYER_TO_MOVE
    assert s.turn is Mark.X


def test_standard_opponent_can_start(config, scheduler):
    c = LocalGameController(config=config, scheduler=scheduler, rng=FixedRng(random_value=0.9))
    c.start(Mode.STANDARD)
    assert c.session.starter is Mark.O
    assert c.session.phase is Phase.OPPONENT_THINKING
    assert not c.submit_move(4)
    scheduler.run_pending()
    assert c.session.board[0] == Mark.O
    assert c.session.phase is Phase.PLAYER_TO_MOVE


def test_standard_starter_is_random(config, scheduler):
    c = LocalGameController(config=config, scheduler=scheduler, rng=np.random.default_rng(0))
    starters = {c.start(Mode.STANDARD).starter for _ in range(40)}
    assert starters == {Mark.X, Mark.O}


def test_malformed_input_is_ignored(human_first, scheduler):
    c = human_first
    assert not c.submit_move(9)
    assert not c.submit_move(-1)
    assert c.session.board == empty_board()
    assert c.submit_move(4)
    scheduler.run_pending()
    before = c.session.board
    assert not c.submit_move(4)
    assert c.session.board == before


def test_weak_play_loses_and_locks_board(human_first, scheduler):
    c = human_first
    s = c.session
    for _ in range(9):
        if s.phase is Phase.FINISHED:
            break
        assert c.submit_move(legal_moves(s.board)[0])
        scheduler.run_pending()
    assert s.phase is Phase.FINISHED
    assert s.outcome is Outcome.O_WINS
    assert not s.active
    assert not c.submit_move(legal_moves(s.board)[0])


def test_restart_discards_pending_opponent_move(human_first, scheduler):
    c = human_first
    c.submit_move(4)
    stale = scheduler.pending[0]
    c.restart()
    assert scheduler.run_pending() == 0
    stale.callback()
    assert c.session.board == empty_board()
    assert c.session.phase is Phase.PLAYER_TO_MOVE


def test_stop_cancels_and_goes_idle(human_first, scheduler):
    c = human_first
    c.submit_move(4)
    c.stop()
    assert scheduler.waiting == 0
    assert c.session.phase is Phase.IDLE
    assert not c.session.active
    assert c.opponent_move() is None


def test_opponent_move_waits_for_its_turn(human_first):
    assert human_first.opponent_move() is None
    assert human_first.session.board == empty_board()


@pytest.mark.parametrize("index", [2, 4])
def test_learning_accepts_any_optimal_move(config, scheduler, index):
    c = LocalGameController(config=config, scheduler=scheduler, rng=FixedRng(), advisor=coach_prefers_2_or_4)
    c.start(Mode.LEARNING, Mark.X, Mark.X)
    assert c.submit_move(index)
    s = c.session
    assert s.feedback.accepted
    assert s.feedback.played == index
    assert s.feedback.correction is None
    assert s.good_moves == 1 and s.mistakes == 0
    assert s.board[index] == Mark.X
    assert s.phase is Phase.OPPONENT_THINKING


def test_learning_corrects_a_mistake(config, scheduler):
    c = LocalGameController(config=config, scheduler=scheduler, rng=FixedRng(), advisor=coach_prefers_2_or_4)
    c.start(Mode.LEARNING, Mark.X, Mark.X)
    assert c.submit_move(0)
    s = c.session
    assert not s.feedback.accepted
    assert s.feedback.correction == 2
    assert s.feedback.optimal.ordered() == [2, 4]
    assert s.feedback.reason == SUBOPTIMAL
    assert s.mistakes == 1
    assert s.phase is Phase.COACHING_CORRECTING
    assert not s.active
    assert s.board == empty_board()
    assert not c.submit_move(5)
    assert scheduler.pending[0].delay == 1.5

    assert scheduler.run_next()
    assert s.board[2] == Mark.X
    assert s.board[0] == EMPTY
    assert s.active
    assert s.phase is Phase.OPPONENT_THINKING
    scheduler.run_pending()
    assert s.phase is Phase.PLAYER_TO_MOVE


def test_learning_as_second_player_with_real_search(config, scheduler):
    c = LocalGameController(config=config, scheduler=scheduler, rng=FixedRng())
    c.start(Mode.LEARNING, Mark.O, Mark.X)
    assert c.session.phase is Phase.OPPONENT_THINKING
    scheduler.run_pending()
    s = c.session
    assert s.board[0] == Mark.X
    assert c.submit_move(1)
    assert s.feedback.optimal.moves == frozenset({4})
    assert s.feedback.correction == 4
    scheduler.run_next()
    assert s.board[4] == Mark.O
    assert s.board[1] == EMPTY


def test_immediate_scheduler_runs_correction_and_reply_inline(config):
    delays = []
    c = LocalGameController(
        config=config,
        scheduler=ImmediateScheduler(sleep=delays.append),
        rng=FixedRng(),
        advisor=coach_prefers_2_or_4,
    )
    c.start(Mode.LEARNING, Mark.X, Mark.X)
    c.submit_move(0)
    s = c.session
    assert delays == [1.5, 0.8]
    assert s.board[2] == Mark.X
    assert list(s.board).count(Mark.O) == 1
    assert s.phase is Phase.PLAYER_TO_MOVE


def test_listener_sees_each_transition(config, scheduler):
    phases = []
    c = LocalGameController(
        config=config,
        scheduler=scheduler,
        rng=FixedRng(),
        listener=lambda s: phases.append(s.phase),
    )
    c.start(Mode.STANDARD)
    c.submit_move(4)
    scheduler.run_pending()
    assert phases == [Phase.PLAYER_TO_MOVE, Phase.OPPONENT_THINKING, Phase.PLAYER_TO_MOVE]


def test_thread_scheduler_delivers_opponent_move():
    ready = threading.Event()

    def on_change(session):
        if session.phase is Phase.PLAYER_TO_MOVE:
            ready.set()

    c = LocalGameController(
        config=GameConfig(ai_delay=0.01, coach_delay=0.01),
        scheduler=ThreadScheduler(),
        rng=FixedRng(random_value=0.9),
        listener=on_change,
    )
    c.start(Mode.STANDARD)
    assert ready.wait(5)
    assert list(c.session.board).count(Mark.O) == 1


def test_standard_mode_human_always_plays_x(config, scheduler):
    c = LocalGameController(config=config, scheduler=scheduler, rng=FixedRng(random_value=0.1))
    s = c.start(Mode.STANDARD, Mark.O, Mark.O)
    assert s.human_mark is Mark.X
    assert s.starter is Mark.X
    assert s.phase is Phase.PLAYER_TO_MOVE
