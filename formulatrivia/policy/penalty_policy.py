from __future__ import annotations

"""Penalty policy: how a wrong answer turns into penalty seconds."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..engine.levels import LevelConfig


@dataclass(frozen=True)
class Decision:
    counted: bool
    penalty_seconds: float
    surcharge_seconds: float = 0.0

    @property
    def total(self) -> float:
        return self.penalty_seconds + self.surcharge_seconds


class PenaltyPolicy(Protocol):
    def decide(self, config: LevelConfig, penalties_so_far: int) -> Decision: ...


class LevelPenaltyPolicy:
    """Flat seconds per wrong answer; the level surcharge lands on the first one only."""

    def decide(self, config: LevelConfig, penalties_so_far: int) -> Decision:
        if not config.has_penalties:
            return Decision(counted=False, penalty_seconds=0.0)
        surcharge = config.first_wrong_surcharge if penalties_so_far == 0 else 0.0
        return Decision(
            counted=True,
            penalty_seconds=float(config.penalty_per_wrong),
            surcharge_seconds=float(surcharge),
        )
