from .schema import LeaderboardEntry, PerfectRunSession, ScoreRecord
from .result_manager import ResultManager

__all__ = ["LeaderboardEntry", "PerfectRunSession", "ScoreRecord", "ResultManager"]
