from __future__ import annotations

"""Level table and penalty settings.

The five levels share the same shape (25 questions, three lives). Penalties
only apply from level 3 upwards; levels 4 and 5 add a one-time surcharge on
the first wrong answer of an attempt.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, Field

from .errors import ConfigurationError

QUESTIONS_PER_LEVEL = 25
MAX_WRONG_ANSWERS = 3
MIN_LEVEL = 1
MAX_LEVEL = 5

LEVEL_NAMES: Dict[int, str] = {
    1: "Rookie",
    2: "Midfielder",
    3: "Front Runner",
    4: "World Champion",
    5: "Formula Legend",
}


class PenaltySettings(BaseModel):
    """Penalty seconds, editable by an admin.

    - levelN_penalty_seconds: added for every wrong answer on level N
    - level4_grid_drop_penalty: one-time surcharge on level 4
    - level5_sponsor_penalty: one-time surcharge on level 5
    """

    level3_penalty_seconds: float = Field(1.0, ge=0)
    level4_penalty_seconds: float = Field(1.0, ge=0)
    level5_penalty_seconds: float = Field(1.0, ge=0)
    level4_grid_drop_penalty: float = Field(5.0, ge=0)
    level5_sponsor_penalty: float = Field(10.0, ge=0)


@dataclass(frozen=True)
class LevelConfig:
    level: int
    name: str
    questions_to_select: int = QUESTIONS_PER_LEVEL
    max_wrong_answers: int = MAX_WRONG_ANSWERS
    has_penalties: bool = False
    penalty_per_wrong: float = 0.0
    first_wrong_surcharge: float = 0.0

    def to_json(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "name": self.name,
            "questions_to_select": self.questions_to_select,
            "max_wrong_answers": self.max_wrong_answers,
            "has_penalties": self.has_penalties,
            "penalty_per_wrong": self.penalty_per_wrong,
            "first_wrong_surcharge": self.first_wrong_surcharge,
        }


def build_level_configs(settings: Optional[PenaltySettings] = None) -> Tuple[LevelConfig, ...]:
    """Build the five-level table with the given penalty seconds threaded in."""
    s = settings or PenaltySettings()
    return (
        LevelConfig(level=1, name=LEVEL_NAMES[1]),
        LevelConfig(level=2, name=LEVEL_NAMES[2]),
        LevelConfig(
            level=3,
            name=LEVEL_NAMES[3],
            has_penalties=True,
            penalty_per_wrong=s.level3_penalty_seconds,
        ),
        LevelConfig(
            level=4,
            name=LEVEL_NAMES[4],
            has_penalties=True,
            penalty_per_wrong=s.level4_penalty_seconds,
            first_wrong_surcharge=s.level4_grid_drop_penalty,
        ),
        LevelConfig(
            level=5,
            name=LEVEL_NAMES[5],
            has_penalties=True,
            penalty_per_wrong=s.level5_penalty_seconds,
            first_wrong_surcharge=s.level5_sponsor_penalty,
        ),
    )


LEVEL_CONFIGS: Tuple[LevelConfig, ...] = build_level_configs()


def get_level_config(level: int, configs: Optional[Iterable[LevelConfig]] = None) -> LevelConfig:
    for cfg in configs if configs is not None else LEVEL_CONFIGS:
        if cfg.level == level:
            return cfg
    raise ConfigurationError(f"Invalid level: {level}")
