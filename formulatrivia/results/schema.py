from __future__ import annotations

"""Result records: saved scores, perfect-run sessions and leaderboard entries."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import pandas as pd

from storage.schema import PerfectRunRow, ScoreRow


@dataclass
class ScoreRecord:
    id: str
    user_id: str
    username: str
    level: int
    level_name: str
    questions_correct: int
    total_questions: int
    time_in_seconds: float
    penalties: int
    penalty_time: float
    final_time: float
    completed: bool
    attempt: int
    created_at: datetime
    perfect_run_session_id: Optional[str] = None

    def to_row(self) -> ScoreRow:
        return ScoreRow(
            score_id=self.id,
            user_id=self.user_id,
            username=self.username,
            level=self.level,
            level_name=self.level_name,
            questions_correct=self.questions_correct,
            total_questions=self.total_questions,
            time_in_seconds=self.time_in_seconds,
            penalties=self.penalties,
            penalty_time=self.penalty_time,
            final_time=self.final_time,
            completed=self.completed,
            attempt=self.attempt,
            perfect_run_session_id=self.perfect_run_session_id,
            created_at=self.created_at,
        )

    @classmethod
    def from_row(cls, row: Any) -> "ScoreRecord":
        run_id = getattr(row, "perfect_run_session_id", None)
        return cls(
            id=str(row.score_id),
            user_id=str(row.user_id),
            username=str(row.username),
            level=int(row.level),
            level_name=str(row.level_name),
            questions_correct=int(row.questions_correct),
            total_questions=int(row.total_questions),
            time_in_seconds=float(row.time_in_seconds),
            penalties=int(row.penalties),
            penalty_time=float(row.penalty_time),
            final_time=float(row.final_time),
            completed=bool(row.completed),
            attempt=int(row.attempt),
            created_at=row.created_at.to_pydatetime() if hasattr(row.created_at, "to_pydatetime") else row.created_at,
            perfect_run_session_id=None if run_id is None or pd.isna(run_id) else str(run_id),
        )


@dataclass
class PerfectRunSession:
    session_id: str
    user_id: str
    username: str
    started_at: datetime
    current_level: int = 1
    total_time: float = 0.0
    completed: bool = False
    completed_at: Optional[datetime] = None

    def to_row(self) -> PerfectRunRow:
        return PerfectRunRow(
            session_id=self.session_id,
            user_id=self.user_id,
            username=self.username,
            started_at=self.started_at,
            completed_at=self.completed_at,
            current_level=self.current_level,
            total_time=self.total_time,
            completed=self.completed,
        )


@dataclass
class LeaderboardEntry:
    user_id: str
    username: str
    total_time: float
    completed_date: datetime
    all_levels_completed: bool = False
    no_mistakes: bool = False
    all_levels_time: Optional[float] = None
    perfect_run_time: Optional[float] = None
    has_perfect_run: bool = False
    perfect_run_date: Optional[datetime] = None
    highest_completed_level: Optional[int] = None
    level_cumulative_times: Dict[int, Optional[int]] = field(default_factory=dict)
    rank: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "username": self.username,
            "total_time": self.total_time,
            "completed_date": self.completed_date.isoformat(),
            "all_levels_completed": self.all_levels_completed,
            "no_mistakes": self.no_mistakes,
            "all_levels_time": self.all_levels_time,
            "perfect_run_time": self.perfect_run_time,
            "has_perfect_run": self.has_perfect_run,
            "perfect_run_date": self.perfect_run_date.isoformat() if self.perfect_run_date else None,
            "highest_completed_level": self.highest_completed_level,
            "level_cumulative_times": {str(k): v for k, v in self.level_cumulative_times.items()},
        }
