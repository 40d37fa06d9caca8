from __future__ import annotations

"""Game controller: one player's progression through the five levels.

Owns the active LevelSession, the completed/perfect level bookkeeping and the
perfect-run session, and hands finished sessions to the ResultManager. A UI
keeps a reference to one controller per player and re-renders from the
snapshots it returns.
"""

import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from ..engine.errors import ConfigurationError, InvalidStateError
from ..engine.levels import MAX_LEVEL, MIN_LEVEL, LevelConfig
from ..engine.session import GameState, LevelSession
from ..questions.bank import QuestionBank
from ..results.result_manager import ResultManager
from ..results.schema import ScoreRecord
from .events import EventBus
from .explain import trace as xtrace


@dataclass(frozen=True)
class PlayerContext:
    user_id: str
    username: str
    started_at: datetime


@dataclass
class RuntimeState:
    completed_levels: List[int] = field(default_factory=list)
    perfect_levels: List[int] = field(default_factory=list)
    total_game_time: float = 0.0
    perfect_run_session_id: Optional[str] = None
    show_perfect_celebration: bool = False
    score_saved: bool = False
    last_score: Optional[ScoreRecord] = None


class GameController:
    def __init__(
        self,
        user_id: str,
        username: str,
        bank: QuestionBank,
        *,
        results: Optional[ResultManager] = None,
        configs: Optional[Sequence[LevelConfig]] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.ctx = PlayerContext(user_id=user_id, username=username, started_at=datetime.now(timezone.utc))
        self.bank = bank
        self.results = results
        self.configs = configs
        self.state = RuntimeState()
        self.session: Optional[LevelSession] = None
        self._clock = clock
        self._rng = rng
        self._events = events

    # --- Level lifecycle ---

    def start_level(self, level: int, carried_over_time: float = 0.0, *, perfect_run: bool = True) -> LevelSession:
        """Build a fresh session for ``level``.

        Starting level 1 from scratch opens a perfect-run session when a
        ResultManager is attached and none is active yet.
        """
        questions = self.bank.for_level(level)
        if not questions:
            raise ConfigurationError(f"No questions available for level {level}")

        if (
            perfect_run
            and level == MIN_LEVEL
            and not carried_over_time
            and self.results is not None
            and self.state.perfect_run_session_id is None
        ):
            run = self.results.start_perfect_run(self.ctx.user_id, self.ctx.username)
            if run.current_level != MIN_LEVEL:
                # a run left open mid-way cannot continue from level 1
                self.results.cancel_perfect_run(run.session_id, self.ctx.user_id)
                xtrace("perfect_run_dropped", {"session_id": run.session_id, "reason": "stale"})
                run = self.results.start_perfect_run(self.ctx.user_id, self.ctx.username)
            self.state.perfect_run_session_id = run.session_id

        self.session = LevelSession(
            level,
            questions,
            carried_over_time,
            configs=self.configs,
            clock=self._clock,
            rng=self._rng,
            events=self._events,
        )
        self.state.score_saved = False
        self.state.last_score = None
        xtrace("level_started", {"level": level, "carried_over": carried_over_time, "run": self.state.perfect_run_session_id})
        return self.session

    def advance_level(self) -> LevelSession:
        """Move to the next level after a perfect completion, keeping the run clock."""
        session = self._require_session()
        state = session.get_state()
        if not session.is_perfect():
            raise InvalidStateError(
                f"Level advancement requires a perfect completion ({state.wrong_answers} wrong answers)"
            )
        if state.current_level >= MAX_LEVEL:
            raise InvalidStateError(f"Cannot advance past level {MAX_LEVEL}")

        carried = session.get_current_time()
        self.complete_level(state.current_level, session.get_final_time(), state.wrong_answers)
        nxt = self.start_level(state.current_level + 1, carried)
        nxt.resume_timer()
        return nxt

    def restart_level(self) -> LevelSession:
        """Start the current level again from scratch; breaks any perfect run."""
        session = self._require_session()
        self._cancel_perfect_run("level_restart")
        return self.start_level(session.get_state().current_level)

    def reset_level(self) -> GameState:
        session = self._require_session()
        self._cancel_perfect_run("level_reset")
        session.reset_level()
        self.state.score_saved = False
        self.state.last_score = None
        return session.get_state()

    # --- Delegation ---

    def submit_answer(self, answer: str) -> GameState:
        session = self._require_session()
        session.submit_answer(answer)
        state = session.get_state()
        if state.wrong_answers > 0:
            self._cancel_perfect_run("wrong_answer")
        if state.is_terminal:
            self._save_score()
            if state.is_level_complete and state.wrong_answers == 0 and state.current_level == MAX_LEVEL:
                self.complete_level(state.current_level, session.get_final_time(), 0)
                self.state.show_perfect_celebration = True
        return state

    def pause_timer(self) -> GameState:
        session = self._require_session()
        session.pause_timer()
        return session.get_state()

    def resume_timer(self) -> GameState:
        session = self._require_session()
        session.resume_timer()
        return session.get_state()

    def get_state(self) -> Optional[GameState]:
        return self.session.get_state() if self.session is not None else None

    # --- Progression bookkeeping ---

    def complete_level(self, level: int, time_seconds: float, wrong_answers: int) -> None:
        if level not in self.state.completed_levels:
            self.state.completed_levels.append(level)
            self.state.total_game_time += time_seconds
        if wrong_answers == 0 and level not in self.state.perfect_levels:
            self.state.perfect_levels.append(level)

    def accessible_levels(self) -> List[int]:
        """Level 1, every completed level, and the one after the highest completed."""
        accessible = {MIN_LEVEL}
        accessible.update(lvl for lvl in self.state.completed_levels if MIN_LEVEL < lvl <= MAX_LEVEL)
        if self.state.completed_levels:
            nxt = max(self.state.completed_levels) + 1
            if nxt <= MAX_LEVEL:
                accessible.add(nxt)
        return sorted(accessible)

    def is_level_accessible(self, level: int) -> bool:
        return level in self.accessible_levels()

    def check_perfect_completion(self) -> bool:
        return all(lvl in self.state.perfect_levels for lvl in range(MIN_LEVEL, MAX_LEVEL + 1))

    def end_game(self) -> None:
        """Leave play; an unfinished perfect run is cancelled, the session kept for review."""
        self._cancel_perfect_run("left_game")

    def reset_game(self) -> None:
        self._cancel_perfect_run("game_reset")
        self.session = None
        self.state = RuntimeState()

    # --- Internals ---

    def _save_score(self) -> None:
        if self.results is None or self.state.score_saved or self.session is None:
            return
        run_id = self.state.perfect_run_session_id
        self.state.last_score = self.results.record_session(
            self.session,
            user_id=self.ctx.user_id,
            username=self.ctx.username,
            perfect_run_session_id=run_id,
        )
        self.state.score_saved = True
        if run_id is not None:
            run = self.results.get_perfect_run(self.ctx.user_id, run_id)
            if run is not None and run.completed:
                self.state.perfect_run_session_id = None

    def _cancel_perfect_run(self, reason: str) -> None:
        run_id = self.state.perfect_run_session_id
        if run_id is None:
            return
        self.state.perfect_run_session_id = None
        if self.results is not None:
            self.results.cancel_perfect_run(run_id, self.ctx.user_id)
        xtrace("perfect_run_dropped", {"session_id": run_id, "reason": reason})

    def _require_session(self) -> LevelSession:
        if self.session is None:
            raise InvalidStateError("No level in progress")
        return self.session
