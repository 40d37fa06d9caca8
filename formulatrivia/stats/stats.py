from __future__ import annotations

"""Level attempt summary: aggregation, formatting and JSON output."""

import json
from pathlib import Path
from typing import Dict

from ..engine.session import LevelSession
from ..engine.timing import format_time


def summarize(session: LevelSession) -> Dict:
    """Collect the counters and times of a session into a plain dict."""
    state = session.get_state()
    answers = session.get_answers()
    if state.is_game_over:
        outcome = "eliminated"
    elif state.is_level_complete:
        outcome = "dnf" if state.is_dnf else "perfect"
    else:
        outcome = "in_progress"
    return {
        "level": state.current_level,
        "level_name": state.level_name,
        "attempt": state.attempt,
        "outcome": outcome,
        "total": len(state.questions),
        "answered": len(answers),
        "correct": state.correct_answers,
        "wrong": state.wrong_answers,
        "penalties": state.penalties,
        "penalty_time": state.penalty_time,
        "level_time": state.level_time,
        "level_final_time": session.get_level_final_time(),
        "final_time": session.get_final_time(),
        "answers": [a.to_json() for a in answers],
    }


def write_summary(summary: Dict, path: str) -> None:
    """Write summary as JSON to path."""
    p = Path(path)
    with p.open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)


def format_summary(summary: Dict) -> str:
    """Return a human-readable summary."""
    lines = [
        f"Level {summary.get('level')} ({summary.get('level_name')}), attempt {summary.get('attempt', 1)}: {summary.get('outcome')}",
        f"Correct: {summary.get('correct', 0)}/{summary.get('total', 0)}  Wrong: {summary.get('wrong', 0)}",
    ]
    penalty_time = float(summary.get("penalty_time", 0.0))
    if penalty_time > 0:
        lines.append(f"Penalties: {summary.get('penalties', 0)} (+{penalty_time:g}s)")
    lines.append(f"Level time: {format_time(summary.get('level_final_time', 0.0))}")
    if summary.get("final_time", 0.0) != summary.get("level_final_time", 0.0):
        lines.append(f"Run time: {format_time(summary.get('final_time', 0.0))}")
    return "\n".join(lines)
