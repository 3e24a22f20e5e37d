from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from typing import Optional

from .advisor import best_moves, self_play
from .config import GameConfig, make_rng
from .errors import InvalidBoard
from .game_basics import Mark, Outcome, current_player, evaluate, parse_board, render_board
from .local_game import GameSession, LocalGameController, Mode, Phase
from .scheduling import ImmediateScheduler
from .tactics import fork_moves, immediate_winning_moves

_STATUS = {
    Phase.PLAYER_TO_MOVE: "Your turn",
    Phase.OPPONENT_THINKING: "AI is thinking...",
    Phase.COACHING_CORRECTING: "Suboptimal! Coach correcting...",
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="xoplay", description="Tic-tac-toe with a perfect opponent and a coach")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--seed", type=int, default=None, help="Seed for the opponent's tie-breaks")

    p_sol = sub.add_parser("solve", help="Optimal moves for the side to move (board: 9 digits, 0=empty,1=X,2=O)")
    p_sol.add_argument("--board", required=True, help="Board string, e.g., 100020000")

    p_tac = sub.add_parser("tactics", help="List immediate wins and forks for side-to-move")
    p_tac.add_argument("--board", required=True, help="Board string, e.g., 100020200")

    p_play = sub.add_parser("play", help="Play against the computed opponent in the terminal")
    p_play.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.STANDARD.value)
    p_play.add_argument("--mark", default="X", help="Your mark in learning mode, X or O (default: X)")
    p_play.add_argument("--starter", default=None, help="Who moves first in learning mode (default: X)")
    p_play.add_argument("--ai-delay", type=float, default=None, help="Seconds before the opponent moves")
    p_play.add_argument("--coach-delay", type=float, default=None, help="Seconds before the coach corrects")

    p_self = sub.add_parser("selfplay", help="Perfect-vs-perfect games from the empty board")
    p_self.add_argument("--games", type=int, default=10, help="Number of games (default: 10)")

    return p


def _print_session(session: GameSession) -> None:
    print()
    print(render_board(session.board))
    fb = session.feedback
    if session.phase is Phase.COACHING_CORRECTING and fb is not None:
        print(f"{_STATUS[session.phase]} ({fb.reason}) best: {fb.optimal.ordered()}")
    elif session.phase is Phase.FINISHED:
        winner = session.outcome.winner
        if winner is None:
            print("It's a Draw!")
        else:
            print(f"{winner.name} Wins!")
    elif session.phase in _STATUS:
        print(_STATUS[session.phase])


def _play(ns: argparse.Namespace, config: GameConfig) -> int:
    try:
        human = Mark.parse(ns.mark)
        starter = Mark.parse(ns.starter) if ns.starter else None
    except ValueError as e:
        logging.error("%s", e)
        return 2
    mode = Mode(ns.mode)
    if mode is Mode.STANDARD and (human is not Mark.X or starter is not None):
        logging.error("--mark and --starter apply to learning mode; standard mode plays X")
        return 2
    if ns.ai_delay is not None:
        config.ai_delay = ns.ai_delay
    if ns.coach_delay is not None:
        config.coach_delay = ns.coach_delay
    controller = LocalGameController(
        config=config,
        scheduler=ImmediateScheduler(),
        rng=make_rng(config.seed),
        listener=_print_session,
    )
    controller.start(mode, human, starter)
    while controller.session.phase is not Phase.FINISHED:
        print("Your move (0-8, q to quit): ", end="", flush=True)
        line = sys.stdin.readline()
        if not line:
            controller.stop()
            return 1
        raw = line.strip()
        if raw.lower() == "q":
            controller.stop()
            return 0
        if not raw.isdigit() or not controller.submit_move(int(raw)):
            logging.warning("Illegal move: %r", raw)
    s = controller.session
    if s.mode is Mode.LEARNING:
        logging.info("good_moves=%d mistakes=%d", s.good_moves, s.mistakes)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        try:
            from importlib.metadata import version as _ver

            print(_ver("xoplay"))
        except Exception:
            print("unknown")
        return 0

    config = GameConfig.from_env()
    if ns.seed is not None:
        config.seed = ns.seed

    if ns.cmd in ("solve", "tactics"):
        try:
            b = parse_board(ns.board)
        except InvalidBoard as e:
            logging.error("%s", e)
            return 2
        outcome = evaluate(b)
        if outcome.is_terminal:
            logging.info("outcome=%s", outcome.value)
            return 0
        p = current_player(b)
        if ns.cmd == "solve":
            ms = best_moves(b, p)
            logging.info("to_move=%s score=%s optimal=%s", p.name, ms.score, ms.ordered())
        else:
            logging.info(
                "to_move=%s wins=%s forks=%s",
                p.name,
                immediate_winning_moves(b, p),
                fork_moves(b, p),
            )
        return 0

    if ns.cmd == "play":
        return _play(ns, config)

    if ns.cmd == "selfplay":
        if ns.games < 1:
            logging.error("--games must be at least 1")
            return 2
        rng = make_rng(config.seed)
        counts: Counter = Counter()
        for _ in range(ns.games):
            _, outcome = self_play(rng)
            counts[outcome] += 1
        logging.info(
            "games=%d x_wins=%d o_wins=%d draws=%d",
            ns.games,
            counts[Outcome.X_WINS],
            counts[Outcome.O_WINS],
            counts[Outcome.DRAW],
        )
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
