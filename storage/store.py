from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd
import pyarrow  # noqa: F401  (parquet engine)

from .schema import DTYPES, LEVELS, PERFECT_RUN_DTYPES, PerfectRunRow, ScoreRow


DATA_FILE = "game_scores.parquet"
RUNS_FILE = "perfect_runs.parquet"


def _empty_df(dtypes: dict) -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in dtypes.items()})


def init_store(data_dir: Path) -> None:
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    scores_path = data_dir / DATA_FILE
    runs_path = data_dir / RUNS_FILE
    if not scores_path.exists():
        _empty_df(DTYPES).to_parquet(scores_path, engine="pyarrow", compression="zstd")
    if not runs_path.exists():
        _empty_df(PERFECT_RUN_DTYPES).to_parquet(runs_path, engine="pyarrow", compression="zstd")


def _fix_dtypes(df: pd.DataFrame, dtypes: dict) -> pd.DataFrame:
    for col, dt in dtypes.items():
        if col not in df.columns:
            df[col] = pd.Series([None] * len(df.index), index=df.index, dtype="object")
        if isinstance(dt, pd.DatetimeTZDtype):
            df[col] = pd.to_datetime(df[col], utc=True)
        else:
            df[col] = df[col].astype(dt)
    return df[list(dtypes.keys())]


def validate_records(records: list[ScoreRow]) -> pd.DataFrame:
    if not isinstance(records, list):
        raise TypeError("records must be a list[ScoreRow]")
    rows = [r if isinstance(r, ScoreRow) else ScoreRow.model_validate(r) for r in records]
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df, DTYPES)


def append_scores(df_new: pd.DataFrame, data_path: Path) -> None:
    f = Path(data_path) / DATA_FILE
    if f.exists():
        df_old = pd.read_parquet(f, engine="pyarrow")
    else:
        df_old = _empty_df(DTYPES)
    df_new = _fix_dtypes(df_new.copy(), DTYPES)
    combined = pd.concat([_fix_dtypes(df_old, DTYPES), df_new], ignore_index=True)
    combined = _fix_dtypes(combined, DTYPES)
    combined = combined.drop_duplicates(subset=["score_id"], keep="last")
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def upsert_perfect_run(run: PerfectRunRow, data_path: Path) -> None:
    f = Path(data_path) / RUNS_FILE
    row = PerfectRunRow.model_validate(run).model_dump()
    df_new = _fix_dtypes(pd.DataFrame([row]), PERFECT_RUN_DTYPES)
    if f.exists():
        df = pd.read_parquet(f, engine="pyarrow")
        if "session_id" in df.columns and not df.empty:
            df = df[df["session_id"].astype("string") != row["session_id"]]
        df = pd.concat([_fix_dtypes(df, PERFECT_RUN_DTYPES), df_new], ignore_index=True)
    else:
        df = df_new
    df.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def delete_perfect_run(session_id: str, data_path: Path) -> None:
    f = Path(data_path) / RUNS_FILE
    if not f.exists():
        return
    df = pd.read_parquet(f, engine="pyarrow")
    df = df[df["session_id"].astype("string") != session_id]
    _fix_dtypes(df, PERFECT_RUN_DTYPES).to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def load_all(data_path: Path) -> pd.DataFrame:
    f = Path(data_path) / DATA_FILE
    if not f.exists():
        return _empty_df(DTYPES).assign(accuracy=pd.Series(dtype="float32"))
    df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), DTYPES)
    total = df["total_questions"].astype("float32").where(df["total_questions"] > 0, other=1.0)
    df["accuracy"] = (df["questions_correct"].astype("float32") / total).astype("float32")
    return df


def load_perfect_runs(data_path: Path) -> pd.DataFrame:
    f = Path(data_path) / RUNS_FILE
    if not f.exists():
        return _empty_df(PERFECT_RUN_DTYPES)
    return _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), PERFECT_RUN_DTYPES)


def query_level(df: pd.DataFrame, *, level: int, user_id: Optional[str] = None) -> pd.DataFrame:
    if level not in LEVELS:
        raise ValueError(f"Unknown level: {level}")
    mask = df["level"].astype(int) == int(level)
    if user_id is not None:
        mask &= df["user_id"].astype("string") == user_id
    return df[mask].sort_values("created_at").reset_index(drop=True)


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")
