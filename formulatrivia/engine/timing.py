from __future__ import annotations

"""Time formatting helpers shared by the engine, the CLI and the leaderboard."""

import math


def format_time(seconds: float) -> str:
    """Format seconds as ``MM:SS.mmm``."""
    seconds = max(0.0, float(seconds))
    minutes = int(seconds // 60)
    secs = seconds - minutes * 60
    return f"{minutes:02d}:{secs:06.3f}"


def round_time_for_display(seconds: float) -> int:
    """Whole seconds, dropping the fraction (what the timer shows)."""
    return int(math.floor(max(0.0, float(seconds))))
