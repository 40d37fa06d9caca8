from .schema import DTYPES, LEVEL_NAMES, LEVELS, PERFECT_RUN_DTYPES, PerfectRunRow, ScoreRow
from .store import (
    init_store,
    validate_records,
    append_scores,
    upsert_perfect_run,
    delete_perfect_run,
    load_all,
    load_perfect_runs,
    query_level,
    export_ndjson,
)

__all__ = [
    "DTYPES",
    "LEVEL_NAMES",
    "LEVELS",
    "PERFECT_RUN_DTYPES",
    "PerfectRunRow",
    "ScoreRow",
    "init_store",
    "validate_records",
    "append_scores",
    "upsert_perfect_run",
    "delete_perfect_run",
    "load_all",
    "load_perfect_runs",
    "query_level",
    "export_ndjson",
]
