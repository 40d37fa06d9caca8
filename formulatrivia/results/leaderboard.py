from __future__ import annotations

"""Leaderboard aggregation over saved scores.

Two kinds of accomplishment are ranked:

- all levels: the sum of a player's best (lowest) completed time on each of
  the five levels, each rounded down to whole seconds;
- perfect run: one continuous, mistake-free run through levels 1-5.

Perfect-run holders rank ahead of everyone else.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..engine.levels import MAX_LEVEL, MIN_LEVEL
from ..engine.timing import round_time_for_display
from .schema import LeaderboardEntry, PerfectRunSession, ScoreRecord

LEADERBOARD_LIMIT = 100
CUMULATIVE_LEVELS = (1, 2, 3, 4)


def best_scores_by_level(df: pd.DataFrame, user_id: str) -> Dict[int, ScoreRecord]:
    """Fastest completed score per level for a user (earliest wins ties)."""
    if df.empty:
        return {}
    mask = (df["user_id"] == user_id).fillna(False) & df["completed"].fillna(False)
    done = df[mask.astype(bool)]
    if done.empty:
        return {}
    done = done.sort_values(["level", "final_time", "created_at"], kind="mergesort")
    best = done.drop_duplicates(subset=["level"], keep="first")
    return {int(r.level): ScoreRecord.from_row(r) for r in best.itertuples(index=False)}


def cumulative_times(best: Dict[int, ScoreRecord]) -> Dict[int, Optional[int]]:
    """Running totals for levels 1-4; a gap leaves every later level undefined."""
    out: Dict[int, Optional[int]] = {}
    running: Optional[int] = 0
    for lvl in CUMULATIVE_LEVELS:
        score = best.get(lvl)
        if running is None or score is None:
            running = None
        else:
            running += round_time_for_display(score.final_time)
        out[lvl] = running
    return out


def build_entry(
    user_id: str,
    username: str,
    df: pd.DataFrame,
    existing: Optional[LeaderboardEntry] = None,
) -> Optional[LeaderboardEntry]:
    """Recompute a user's entry after a completed level. Perfect-run data is kept."""
    best = best_scores_by_level(df, user_id)
    cumulative = cumulative_times(best)
    highest = max((lvl for lvl in CUMULATIVE_LEVELS if lvl in best), default=0)
    all_completed = all(lvl in best for lvl in range(MIN_LEVEL, MAX_LEVEL + 1))

    if not best or (not all_completed and highest == 0):
        return existing

    completed_date = max(s.created_at for s in best.values())
    base = existing or LeaderboardEntry(user_id=user_id, username=username, total_time=0.0, completed_date=completed_date)

    if all_completed:
        all_levels_time = float(sum(round_time_for_display(s.final_time) for s in best.values()))
        display = all_levels_time
        if base.perfect_run_time and base.perfect_run_time < all_levels_time:
            display = base.perfect_run_time
        return replace(
            base,
            username=username,
            total_time=display,
            completed_date=completed_date,
            all_levels_completed=True,
            no_mistakes=all(s.attempt == 1 for s in best.values()),
            all_levels_time=all_levels_time,
            highest_completed_level=highest,
            level_cumulative_times=cumulative,
        )

    display_time = 0
    for lvl in CUMULATIVE_LEVELS:
        if lvl <= highest and cumulative[lvl] is not None:
            display_time = cumulative[lvl]
    return replace(
        base,
        username=username,
        total_time=float(display_time),
        completed_date=completed_date,
        all_levels_completed=False,
        highest_completed_level=highest,
        level_cumulative_times=cumulative,
    )


def apply_perfect_run(run: PerfectRunSession, existing: Optional[LeaderboardEntry] = None) -> LeaderboardEntry:
    """Fold a finished perfect run into the user's entry."""
    finished_at: datetime = run.completed_at or run.started_at
    if existing is None:
        return LeaderboardEntry(
            user_id=run.user_id,
            username=run.username,
            total_time=run.total_time,
            completed_date=finished_at,
            all_levels_completed=False,
            no_mistakes=True,
            perfect_run_time=run.total_time,
            has_perfect_run=True,
            perfect_run_date=finished_at,
        )
    entry = replace(
        existing,
        perfect_run_time=run.total_time,
        has_perfect_run=True,
        perfect_run_date=finished_at,
    )
    if not existing.total_time or run.total_time < existing.total_time:
        entry = replace(entry, total_time=run.total_time, completed_date=finished_at)
    return entry


def _sort_key(entry: LeaderboardEntry) -> tuple:
    if entry.has_perfect_run and entry.perfect_run_time:
        return (0, entry.perfect_run_time, entry.total_time)
    primary = entry.all_levels_time if entry.all_levels_time else entry.total_time
    return (1, primary, entry.total_time)


def rank_entries(entries: Iterable[LeaderboardEntry], limit: int = LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
    eligible = [e for e in entries if e.all_levels_completed or e.has_perfect_run]
    ranked = sorted(eligible, key=_sort_key)[:limit]
    return [replace(e, rank=i) for i, e in enumerate(ranked, start=1)]
