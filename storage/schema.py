from __future__ import annotations

"""Schema constants and Pydantic models for Parquet-backed score history."""

from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from pandas.api.types import CategoricalDtype
from pydantic import BaseModel, Field, field_validator, model_validator

# --- Constants ---

LEVELS = {1, 2, 3, 4, 5}
LEVEL_NAMES = {"Rookie", "Midfielder", "Front Runner", "World Champion", "Formula Legend"}


def _cat_dtype(categories: set[str]) -> CategoricalDtype:
    return CategoricalDtype(categories=sorted(categories), ordered=False)


DTYPES = {
    "score_id": "string",
    "user_id": "string",
    "username": "string",
    "level": "UInt8",
    "level_name": _cat_dtype(LEVEL_NAMES),
    "questions_correct": "UInt16",
    "total_questions": "UInt16",
    "time_in_seconds": "Float64",
    "penalties": "UInt16",
    "penalty_time": "Float64",
    "final_time": "Float64",
    "completed": "boolean",
    "attempt": "UInt16",
    "perfect_run_session_id": "string",
    # timezone-aware UTC timestamps
    "created_at": pd.DatetimeTZDtype(tz="UTC"),
}

PERFECT_RUN_DTYPES = {
    "session_id": "string",
    "user_id": "string",
    "username": "string",
    "started_at": pd.DatetimeTZDtype(tz="UTC"),
    "completed_at": pd.DatetimeTZDtype(tz="UTC"),
    "current_level": "UInt8",
    "total_time": "Float64",
    "completed": "boolean",
}


def _to_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


# --- Pydantic models ---

class ScoreRow(BaseModel):
    score_id: str
    user_id: str
    username: str
    level: int = Field(ge=1, le=5)
    level_name: str
    questions_correct: int = Field(ge=0, le=65535)
    total_questions: int = Field(ge=0, le=65535)
    time_in_seconds: float = Field(ge=0)
    penalties: int = Field(default=0, ge=0, le=65535)
    penalty_time: float = Field(default=0.0, ge=0)
    final_time: float = Field(ge=0)
    completed: bool
    attempt: int = Field(default=1, ge=1, le=65535)
    perfect_run_session_id: Optional[str] = None
    created_at: datetime

    @field_validator("level_name")
    @classmethod
    def _known_level_name(cls, v: str) -> str:
        if v not in LEVEL_NAMES:
            raise ValueError(f"unknown level name: {v}")
        return v

    @model_validator(mode="after")
    def _correct_le_total(self) -> "ScoreRow":
        if self.questions_correct > self.total_questions:
            raise ValueError("questions_correct must be <= total_questions")
        return self

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)


class PerfectRunRow(BaseModel):
    session_id: str
    user_id: str
    username: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    current_level: int = Field(default=1, ge=1, le=6)
    total_time: float = Field(default=0.0, ge=0)
    completed: bool = False

    @field_validator("started_at", "completed_at")
    @classmethod
    def _ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(v)
