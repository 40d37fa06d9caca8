from __future__ import annotations

"""Level session engine: question flow, lives, penalties and the run timer.

One LevelSession covers one attempt at one level. Time is pull-based: the
engine stores clock readings and derives elapsed time on every read, so no
background task ever mutates it. A caller may poll ``get_current_time()`` for
display as often as it likes.
"""

import random
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..app.events import EventBus
from ..app.explain import trace as xtrace
from ..policy.penalty_policy import LevelPenaltyPolicy, PenaltyPolicy
from ..util.randomness import shuffled
from .errors import ConfigurationError, InvalidStateError
from .levels import LevelConfig, get_level_config

if TYPE_CHECKING:
    from ..questions.schema import Question

STATE_CHANGED = "state_changed"


@dataclass
class GameState:
    current_level: int
    level_name: str
    questions: List["Question"]
    current_question_index: int = 0
    correct_answers: int = 0
    wrong_answers: int = 0
    start_time: float = 0.0
    penalties: int = 0
    penalty_time: float = 0.0
    total_time: float = 0.0
    level_time: float = 0.0
    is_game_over: bool = False
    is_level_complete: bool = False
    is_dnf: bool = False
    attempt: int = 1
    is_paused: bool = False
    paused_time: float = 0.0
    accumulated_time: float = 0.0
    carried_over_time: float = 0.0

    @property
    def is_terminal(self) -> bool:
        return self.is_game_over or self.is_level_complete


@dataclass(frozen=True)
class GameAnswer:
    question_id: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    time_to_answer: float

    def to_json(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "selected_answer": self.selected_answer,
            "correct_answer": self.correct_answer,
            "is_correct": self.is_correct,
            "time_to_answer": self.time_to_answer,
        }


class LevelSession:
    """A single attempt at a level.

    Args:
        level: Level number (1-5).
        questions: Candidate questions for the level; shuffled and truncated
            to the level's question count. A short pool is played as is.
        carried_over_time: Seconds already on the clock from earlier levels of
            a perfect run. When positive the session starts paused so the
            caller decides when the clock resumes.
        configs: Level table to use (defaults to ``LEVEL_CONFIGS``).
        clock: Monotonic seconds source.
        rng: Random source for question and answer shuffling.
        events: Optional bus receiving a ``state_changed`` snapshot after every
            mutation.

    Raises:
        ConfigurationError: unknown level or negative carried-over time.
    """

    def __init__(
        self,
        level: int,
        questions: Iterable["Question"],
        carried_over_time: float = 0.0,
        *,
        configs: Optional[Sequence[LevelConfig]] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        penalty_policy: Optional[PenaltyPolicy] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = get_level_config(level, configs)
        carried = float(carried_over_time or 0.0)
        if carried < 0:
            raise ConfigurationError(f"carried_over_time must be >= 0, got {carried}")

        self._clock = clock
        self._rng = rng or random.Random()
        self._policy: PenaltyPolicy = penalty_policy or LevelPenaltyPolicy()
        self._events = events
        self._answers: List[GameAnswer] = []
        self._answer_order: Optional[Tuple[int, List[str]]] = None

        pool = list(questions)
        selected = shuffled(pool, self._rng)[: self.config.questions_to_select]
        if len(selected) < self.config.questions_to_select:
            xtrace(
                "short_question_pool",
                {"level": level, "available": len(selected), "required": self.config.questions_to_select},
            )

        now = self._clock()
        start_paused = carried > 0
        self._state = GameState(
            current_level=self.config.level,
            level_name=self.config.name,
            questions=selected,
            start_time=now,
            is_paused=start_paused,
            paused_time=now if start_paused else 0.0,
            accumulated_time=carried,
            carried_over_time=carried,
        )
        xtrace(
            "session_created",
            {"level": level, "questions": len(selected), "carried_over": carried, "paused": start_paused},
        )
        self._publish()

    # --- Questions ---

    def get_current_question(self) -> Optional["Question"]:
        s = self._state
        if s.is_game_over or s.is_level_complete:
            return None
        if s.current_question_index >= len(s.questions):
            return None
        return s.questions[s.current_question_index]

    def get_shuffled_answers(self) -> List[str]:
        """Answers of the current question in random order.

        The order is drawn once per question and repeated on later calls
        until the question advances, so a re-render shows the same layout.
        """
        question = self.get_current_question()
        if question is None:
            return []
        idx = self._state.current_question_index
        if self._answer_order is None or self._answer_order[0] != idx:
            self._answer_order = (idx, shuffled(question.all_answers, self._rng))
        return list(self._answer_order[1])

    # --- Answers ---

    def submit_answer(self, selected_answer: str) -> GameAnswer:
        question = self.get_current_question()
        if question is None:
            raise InvalidStateError("No current question available")

        s = self._state
        is_correct = selected_answer == question.correct_answer
        answer = GameAnswer(
            question_id=question.id,
            selected_answer=selected_answer,
            correct_answer=question.correct_answer,
            is_correct=is_correct,
            time_to_answer=self._clock() - s.start_time,
        )
        self._answers.append(answer)
        xtrace(
            "answer_submitted",
            {"level": s.current_level, "index": s.current_question_index, "correct": is_correct},
        )

        if is_correct:
            s.correct_answers += 1
        else:
            s.wrong_answers += 1
            self._apply_penalty()
            if s.wrong_answers >= self.config.max_wrong_answers:
                self._finalize()
                s.is_game_over = True
                s.is_dnf = True
                xtrace("game_over", {"level": s.current_level, "wrong_answers": s.wrong_answers})
                self._publish()
                return answer

        s.current_question_index += 1
        if s.current_question_index >= len(s.questions):
            self._finalize()
            s.is_level_complete = True
            if s.wrong_answers > 0:
                s.is_dnf = True
            xtrace(
                "level_complete",
                {
                    "level": s.current_level,
                    "dnf": s.is_dnf,
                    "level_final_time": self.get_level_final_time(),
                    "final_time": self.get_final_time(),
                },
            )
        self._publish()
        return answer

    def _apply_penalty(self) -> None:
        s = self._state
        decision = self._policy.decide(self.config, s.penalties)
        if not decision.counted:
            return
        s.penalties += 1
        s.penalty_time += decision.total
        xtrace(
            "penalty_applied",
            {"level": s.current_level, "seconds": decision.total, "penalty_time": s.penalty_time},
        )

    def _finalize(self) -> None:
        self.pause_timer(publish=False)
        s = self._state
        s.total_time = s.accumulated_time
        s.level_time = s.accumulated_time - s.carried_over_time

    # --- Timer ---

    def pause_timer(self, *, publish: bool = True) -> None:
        s = self._state
        if s.is_paused:
            return
        now = self._clock()
        s.is_paused = True
        s.paused_time = now
        s.accumulated_time += now - s.start_time
        xtrace("timer_paused", {"accumulated": s.accumulated_time})
        if publish:
            self._publish()

    def resume_timer(self) -> None:
        s = self._state
        if not s.is_paused:
            return
        s.is_paused = False
        s.start_time = self._clock()
        xtrace("timer_resumed", {"accumulated": s.accumulated_time})
        self._publish()

    def get_current_time(self) -> float:
        s = self._state
        if s.is_paused:
            return s.accumulated_time
        return s.accumulated_time + (self._clock() - s.start_time)

    def get_time_elapsed(self) -> float:
        return self.get_current_time()

    def get_final_time(self) -> float:
        """Total run time (carried-over plus this level) plus penalties."""
        return self._state.total_time + self._state.penalty_time

    def get_level_final_time(self) -> float:
        """This level's own running time plus penalties."""
        return self._state.level_time + self._state.penalty_time

    # --- Lifecycle ---

    def reset_level(self) -> None:
        s = self._state
        s.current_question_index = 0
        s.correct_answers = 0
        s.wrong_answers = 0
        s.penalties = 0
        s.penalty_time = 0.0
        s.total_time = 0.0
        s.level_time = 0.0
        s.is_game_over = False
        s.is_level_complete = False
        s.is_dnf = False
        s.is_paused = False
        s.paused_time = 0.0
        s.accumulated_time = 0.0
        s.carried_over_time = 0.0
        s.start_time = self._clock()
        s.attempt += 1
        self._answers = []
        self._answer_order = None
        xtrace("level_reset", {"level": s.current_level, "attempt": s.attempt})
        self._publish()

    # --- Queries ---

    def get_state(self) -> GameState:
        return replace(self._state, questions=list(self._state.questions))

    def get_answers(self) -> List[GameAnswer]:
        return list(self._answers)

    def get_progress(self) -> Dict[str, float]:
        total = len(self._state.questions)
        current = self._state.current_question_index + 1
        percentage = (current / total) * 100 if total else 0.0
        return {"current": current, "total": total, "percentage": percentage}

    def is_perfect(self) -> bool:
        return self._state.is_level_complete and self._state.wrong_answers == 0

    def _publish(self) -> None:
        if self._events is not None:
            self._events.emit(STATE_CHANGED, self.get_state())
