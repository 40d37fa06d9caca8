"""Formula Trivia Challenge: timed multiple-choice levels with penalties and a leaderboard."""

__version__ = "0.1.0"

__all__ = ["__version__"]
