from __future__ import annotations

"""Results Manager: saved scores, personal bests, perfect runs and the leaderboard.

Everything lives in memory; pass ``data_dir`` to mirror scores and perfect
runs into the Parquet store and reload them on start.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

import pandas as pd

from storage.store import (
    append_scores as storage_append,
    delete_perfect_run as storage_delete_run,
    init_store as storage_init_store,
    load_all as storage_load_all,
    load_perfect_runs as storage_load_runs,
    upsert_perfect_run as storage_upsert_run,
    validate_records as storage_validate_records,
)

from ..app.explain import trace as xtrace
from ..engine.errors import ConfigurationError, InvalidStateError
from ..engine.levels import MAX_LEVEL, MIN_LEVEL, QUESTIONS_PER_LEVEL
from ..engine.session import LevelSession
from .leaderboard import apply_perfect_run, build_entry, rank_entries
from .schema import LeaderboardEntry, PerfectRunSession, ScoreRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResultManager:
    def __init__(
        self,
        data_dir: Optional[Path] = None,
        *,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._data_dir = Path(data_dir) if data_dir is not None else None
        self._now = now
        self._scores: List[ScoreRecord] = []
        self._runs: Dict[str, PerfectRunSession] = {}
        self._leaderboard: Dict[str, LeaderboardEntry] = {}
        if self._data_dir is not None:
            storage_init_store(self._data_dir)
            self._load()

    # --- Scores ---

    def record_score(
        self,
        *,
        user_id: str,
        username: str,
        level: int,
        level_name: str,
        questions_correct: int,
        total_questions: int,
        time_in_seconds: float,
        penalties: int,
        penalty_time: float,
        final_time: float,
        completed: bool,
        attempt: int = 1,
        perfect_run_session_id: Optional[str] = None,
    ) -> ScoreRecord:
        if not user_id or not username:
            raise InvalidStateError("User ID and username are required")
        self._check_level(level)
        rec = ScoreRecord(
            id=f"score_{uuid4().hex}",
            user_id=user_id,
            username=username,
            level=int(level),
            level_name=level_name,
            questions_correct=int(questions_correct),
            total_questions=int(total_questions),
            time_in_seconds=float(time_in_seconds),
            penalties=int(penalties or 0),
            penalty_time=float(penalty_time or 0.0),
            final_time=float(final_time),
            completed=bool(completed),
            attempt=int(attempt or 1),
            created_at=self._now(),
            perfect_run_session_id=perfect_run_session_id,
        )
        self._scores.append(rec)
        if self._data_dir is not None:
            storage_append(storage_validate_records([rec.to_row()]), self._data_dir)
        xtrace("score_saved", {"user": user_id, "level": rec.level, "final_time": rec.final_time, "completed": rec.completed})

        if rec.completed:
            self._update_leaderboard(user_id, username)
            if perfect_run_session_id:
                self._advance_perfect_run(perfect_run_session_id, user_id, rec.level, rec.final_time)
        return rec

    def record_session(
        self,
        session: LevelSession,
        *,
        user_id: str,
        username: str,
        perfect_run_session_id: Optional[str] = None,
    ) -> ScoreRecord:
        """Save the score of a session that reached a terminal state."""
        state = session.get_state()
        if not state.is_terminal:
            raise InvalidStateError("Session has not finished yet")
        run_id = perfect_run_session_id if state.wrong_answers == 0 else None
        return self.record_score(
            user_id=user_id,
            username=username,
            level=state.current_level,
            level_name=state.level_name,
            questions_correct=state.correct_answers,
            total_questions=len(state.questions),
            time_in_seconds=state.level_time,
            penalties=state.penalties,
            penalty_time=state.penalty_time,
            final_time=session.get_level_final_time(),
            completed=state.is_level_complete,
            attempt=state.attempt,
            perfect_run_session_id=run_id,
        )

    def scores(self, user_id: Optional[str] = None) -> List[ScoreRecord]:
        return [s for s in self._scores if user_id is None or s.user_id == user_id]

    def scores_frame(self) -> pd.DataFrame:
        return storage_validate_records([s.to_row() for s in self._scores])

    def personal_best(self, user_id: str, level: int) -> Optional[Dict[str, Any]]:
        """Lowest final time among completed, fully-correct attempts at a level."""
        self._check_level(level)
        eligible = [
            s
            for s in self._scores
            if s.user_id == user_id and s.level == level and s.completed and s.questions_correct == QUESTIONS_PER_LEVEL
        ]
        if not eligible:
            return None
        best = min(eligible, key=lambda s: (s.final_time, s.created_at))
        return {"personal_best_time": best.final_time, "achieved_at": best.created_at}

    # --- Perfect runs ---

    def start_perfect_run(self, user_id: str, username: str) -> PerfectRunSession:
        if not user_id or not username:
            raise InvalidStateError("User ID and username are required")
        active = self.get_perfect_run(user_id)
        if active is not None:
            xtrace("perfect_run_resumed", {"session_id": active.session_id, "level": active.current_level})
            return active
        run = PerfectRunSession(
            session_id=uuid4().hex,
            user_id=user_id,
            username=username,
            started_at=self._now(),
        )
        self._runs[run.session_id] = run
        self._persist_run(run)
        xtrace("perfect_run_started", {"session_id": run.session_id, "user": user_id})
        return run

    def get_perfect_run(self, user_id: str, session_id: Optional[str] = None) -> Optional[PerfectRunSession]:
        if session_id is not None:
            return self._runs.get(session_id)
        active = [r for r in self._runs.values() if r.user_id == user_id and not r.completed]
        if not active:
            return None
        return max(active, key=lambda r: r.started_at)

    def cancel_perfect_run(self, session_id: str, user_id: str) -> None:
        run = self._runs.get(session_id)
        if run is None or run.user_id != user_id:
            raise InvalidStateError("Session not found or unauthorized")
        del self._runs[session_id]
        if self._data_dir is not None:
            storage_delete_run(session_id, self._data_dir)
        xtrace("perfect_run_cancelled", {"session_id": session_id})

    def _advance_perfect_run(self, session_id: str, user_id: str, completed_level: int, level_time: float) -> None:
        run = self._runs.get(session_id)
        if run is None or run.user_id != user_id:
            xtrace("perfect_run_invalid", {"session_id": session_id, "user": user_id})
            return
        run.current_level = completed_level + 1
        run.total_time = run.total_time + level_time
        if completed_level == MAX_LEVEL:
            run.completed = True
            run.completed_at = self._now()
            self._leaderboard[user_id] = apply_perfect_run(run, self._leaderboard.get(user_id))
            xtrace("perfect_run_completed", {"session_id": session_id, "total_time": run.total_time})
        self._persist_run(run)

    def _persist_run(self, run: PerfectRunSession) -> None:
        if self._data_dir is not None:
            storage_upsert_run(run.to_row(), self._data_dir)

    # --- Leaderboard ---

    def leaderboard(self) -> List[LeaderboardEntry]:
        return rank_entries(self._leaderboard.values())

    def leaderboard_entry(self, user_id: str) -> Optional[LeaderboardEntry]:
        return self._leaderboard.get(user_id)

    def _update_leaderboard(self, user_id: str, username: str) -> None:
        entry = build_entry(user_id, username, self.scores_frame(), self._leaderboard.get(user_id))
        if entry is not None:
            self._leaderboard[user_id] = entry

    # --- Loading ---

    def _load(self) -> None:
        assert self._data_dir is not None
        df = storage_load_all(self._data_dir)
        self._scores = [ScoreRecord.from_row(r) for r in df.sort_values("created_at").itertuples(index=False)]
        runs = storage_load_runs(self._data_dir)
        for r in runs.itertuples(index=False):
            completed_at = None if pd.isna(r.completed_at) else r.completed_at.to_pydatetime()
            self._runs[str(r.session_id)] = PerfectRunSession(
                session_id=str(r.session_id),
                user_id=str(r.user_id),
                username=str(r.username),
                started_at=r.started_at.to_pydatetime(),
                current_level=int(r.current_level),
                total_time=float(r.total_time),
                completed=bool(r.completed),
                completed_at=completed_at,
            )
        frame = self.scores_frame()
        for user_id in sorted({s.user_id for s in self._scores if s.completed}):
            username = next(s.username for s in reversed(self._scores) if s.user_id == user_id)
            entry = build_entry(user_id, username, frame, None)
            if entry is not None:
                self._leaderboard[user_id] = entry
        finished = sorted((r for r in self._runs.values() if r.completed), key=lambda r: r.completed_at or r.started_at)
        for run in finished:
            self._leaderboard[run.user_id] = apply_perfect_run(run, self._leaderboard.get(run.user_id))

    @staticmethod
    def _check_level(level: int) -> None:
        if not (MIN_LEVEL <= int(level) <= MAX_LEVEL):
            raise ConfigurationError(f"Level must be between {MIN_LEVEL} and {MAX_LEVEL}")
