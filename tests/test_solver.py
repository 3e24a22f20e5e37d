from xoplay.advisor import best_moves
from xoplay.game_basics import EMPTY, Mark, empty_board
from xoplay.solver import score

X, O, _ = Mark.X, Mark.O, EMPTY


def test_terminal_scores_depend_on_depth():
    x_win = (X, X, X, O, O, _, _, _, _)
    assert score(x_win, 0, True, Mark.X) == 10
    assert score(x_win, 3, False, Mark.X) == 7
    assert score(x_win, 0, True, Mark.O) == -10
    assert score(x_win, 4, True, Mark.O) == -6


def test_draw_scores_zero():
    draw = (X, O, X, X, O, O, O, X, X)
    assert score(draw, 5, True, Mark.X) == 0
    assert score(draw, 5, False, Mark.O) == 0


def test_initial_state_is_draw_under_perfect_play():
    assert score(empty_board(), 0, True, Mark.X) == 0


def test_immediate_win_preferred_over_slower_win():
    # X to move, immediate win at 2
    b = (X, X, _, _, O, _, _, O, _)
    ms = best_moves(b, Mark.X)
    assert ms.moves == frozenset({2})
    assert ms.score == 10


def test_forced_loss_is_scored_by_its_distance():
    # O to move, X threatens both 2 and 3: every reply loses on the next ply
    b = (X, X, _, _, O, _, X, _, O)
    ms = best_moves(b, Mark.O)
    assert ms.moves == frozenset({2, 3, 5, 7})
    assert ms.score == -9


def test_search_is_deterministic():
    b = (X, _, _, _, O, _, _, _, _)
    first = [score(b[:i] + (X,) + b[i + 1:], 0, False, Mark.X) for i in range(9) if b[i] == _]
    second = [score(b[:i] + (X,) + b[i + 1:], 0, False, Mark.X) for i in range(9) if b[i] == _]
    assert first == second
