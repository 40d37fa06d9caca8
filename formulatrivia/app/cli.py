from __future__ import annotations

"""CLI for Formula Trivia using GameController and ResultManager."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .. import __version__
from ..config.config import level_configs_from, load_config, validate_config
from ..engine.errors import TriviaError
from ..engine.levels import MAX_LEVEL, MIN_LEVEL
from ..engine.timing import format_time
from ..questions.bank import QuestionBank
from ..results.result_manager import ResultManager
from ..stats.stats import format_summary, summarize, write_summary
from ..util.randomness import make_rng, seed_if_needed
from . import explain
from .session_manager import GameController

UI = Dict[str, Callable[..., Any]]


def _build_ui() -> UI:
    def ask(prompt: str) -> str:
        return input(prompt)

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


def _results_from(cfg: Dict[str, Any], data_dir: Optional[str]) -> Optional[ResultManager]:
    if data_dir:
        return ResultManager(Path(data_dir))
    if cfg["storage"]["enabled"]:
        return ResultManager(Path(cfg["storage"]["data_dir"]))
    return None


def play_level(controller: GameController, ui: UI, *, show_timer: bool = True) -> bool:
    """Drive the active session until it ends. Returns False if the player quit."""
    ask = ui["ask"]
    inform = ui["inform"]
    session = controller.session
    assert session is not None

    while True:
        question = session.get_current_question()
        if question is None:
            return True
        progress = session.get_progress()
        header = f"Q{progress['current']}/{progress['total']}"
        if show_timer:
            header += f"  [{format_time(session.get_current_time())}]"
        inform(f"\n{header}  {question.question}")
        answers = session.get_shuffled_answers()
        for i, a in enumerate(answers, start=1):
            inform(f"  {i}. {a}")

        while True:
            raw = ask(f"Answer (1-{len(answers)}), 'p' pause, 'q' quit: ").strip().lower()
            if raw == "q":
                return False
            if raw == "p":
                controller.pause_timer()
                ask("Paused. Press Enter to resume.")
                controller.resume_timer()
                continue
            if raw.isdigit() and 1 <= int(raw) <= len(answers):
                break
            inform("Please enter a valid choice.")

        selected = answers[int(raw) - 1]
        state = controller.submit_answer(selected)
        if selected == question.correct_answer:
            inform("Correct!")
        else:
            lives = session.config.max_wrong_answers - state.wrong_answers
            inform(f"Incorrect. Answer was {question.correct_answer}. Lives left: {max(lives, 0)}")


def run_game(
    controller: GameController,
    level: int,
    ui: UI,
    *,
    show_timer: bool = True,
    show_summary: bool = True,
    output_path: Optional[str] = None,
) -> int:
    inform = ui["inform"]
    ask = ui["ask"]
    controller.start_level(level)

    try:
        while True:
            session = controller.session
            assert session is not None
            inform(f"\nLevel {session.config.level}: {session.config.name}")
            if not play_level(controller, ui, show_timer=show_timer):
                inform("Quit.")
                return 1

            summary = summarize(session)
            if show_summary:
                inform("\n" + format_summary(summary))
            if output_path:
                write_summary(summary, output_path)

            state = session.get_state()
            if session.is_perfect():
                if state.current_level >= MAX_LEVEL:
                    if controller.check_perfect_completion():
                        inform("Perfect run through all five levels!")
                    return 0
                if ask(f"Continue to level {state.current_level + 1}? [y/N] ").strip().lower() == "y":
                    controller.advance_level()
                    continue
                return 0
            if ask("Retry this level? [y/N] ").strip().lower() == "y":
                controller.restart_level()
                continue
            return 0
    finally:
        controller.end_game()


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="formulatrivia")
    p.add_argument("--version", action="version", version=f"formulatrivia {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    lp = sub.add_parser("list-levels")
    lp.add_argument("--config", default=None)
    lp.add_argument("--json", action="store_true")

    rp = sub.add_parser("play")
    rp.add_argument("--config", default=None)
    rp.add_argument("--questions", default=None, help="Question file (YAML or JSON)")
    rp.add_argument("--level", type=int, default=MIN_LEVEL)
    rp.add_argument("--user", default="player")
    rp.add_argument("--data-dir", dest="data_dir", default=None)
    rp.add_argument("--seed", type=int, default=None)
    rp.add_argument("--explain", action="store_true")

    lb = sub.add_parser("leaderboard")
    lb.add_argument("--config", default=None)
    lb.add_argument("--data-dir", dest="data_dir", default=None)
    lb.add_argument("--json", action="store_true")

    pb = sub.add_parser("personal-best")
    pb.add_argument("--config", default=None)
    pb.add_argument("--data-dir", dest="data_dir", default=None)
    pb.add_argument("--user", required=True)
    pb.add_argument("--level", type=int, required=True)

    args = p.parse_args(argv)

    try:
        cfg = validate_config(load_config(args.config))

        if args.cmd == "list-levels":
            configs = level_configs_from(cfg)
            if args.json:
                print(json.dumps([lc.to_json() for lc in configs], indent=2))
                return 0
            for lc in configs:
                rule = "no penalties"
                if lc.has_penalties:
                    rule = f"+{lc.penalty_per_wrong:g}s per wrong answer"
                    if lc.first_wrong_surcharge:
                        rule += f", +{lc.first_wrong_surcharge:g}s on the first"
                print(f"{lc.level}. {lc.name}: {lc.questions_to_select} questions, {lc.max_wrong_answers} lives, {rule}")
            return 0

        if args.cmd == "leaderboard":
            results = _results_from(cfg, args.data_dir)
            entries = results.leaderboard() if results is not None else []
            if args.json:
                print(json.dumps([e.to_json() for e in entries], indent=2))
                return 0
            if not entries:
                print("Leaderboard is empty.")
                return 0
            for e in entries:
                kind = "perfect run" if e.has_perfect_run and e.perfect_run_time else "all levels"
                print(f"{e.rank:>3}. {e.username:<20} {format_time(e.total_time)}  ({kind})")
            return 0

        if args.cmd == "personal-best":
            results = _results_from(cfg, args.data_dir)
            best = results.personal_best(args.user, args.level) if results is not None else None
            if best is None:
                print(f"No completed perfect attempt at level {args.level} yet.")
            else:
                print(f"Level {args.level}: {format_time(best['personal_best_time'])} ({best['achieved_at']:%Y-%m-%d %H:%M})")
            return 0

        # play
        explain.enable(args.explain or bool(cfg["ui"]["explain"]))
        seed = args.seed if args.seed is not None else seed_if_needed()
        bank = QuestionBank.from_file(args.questions or cfg["questions"]["path"])
        results = _results_from(cfg, args.data_dir)
        controller = GameController(
            args.user,
            args.user,
            bank,
            results=results,
            configs=level_configs_from(cfg),
            rng=make_rng(seed),
        )
        if results is not None:
            for s in results.scores(args.user):
                if s.completed:
                    controller.complete_level(s.level, s.final_time, s.total_questions - s.questions_correct)
        if not controller.is_level_accessible(args.level):
            print(
                f"Level {args.level} is locked. Available: {', '.join(map(str, controller.accessible_levels()))}",
                file=sys.stderr,
            )
            return 2
        return run_game(
            controller,
            args.level,
            _build_ui(),
            show_timer=bool(cfg["ui"]["show_timer"]),
            show_summary=bool(cfg["stats"]["show_summary"]),
            output_path=cfg["stats"].get("output_path"),
        )
    except TriviaError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
