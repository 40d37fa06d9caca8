from .errors import ConfigurationError, InvalidStateError, TriviaError
from .levels import LEVEL_CONFIGS, LevelConfig, PenaltySettings, build_level_configs, get_level_config
from .session import GameAnswer, GameState, LevelSession
from .timing import format_time, round_time_for_display

__all__ = [
    "ConfigurationError",
    "InvalidStateError",
    "TriviaError",
    "LEVEL_CONFIGS",
    "LevelConfig",
    "PenaltySettings",
    "build_level_configs",
    "get_level_config",
    "GameAnswer",
    "GameState",
    "LevelSession",
    "format_time",
    "round_time_for_display",
]
