from __future__ import annotations

"""Shared fixtures for the unittest suites: a manual clock and question factories."""

from typing import List

from formulatrivia.questions import Question, QuestionBank


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_questions(level: int, n: int = 25) -> List[Question]:
    return [
        Question(
            id=f"L{level}-{i}",
            level=level,
            question=f"Level {level} question {i}?",
            correct_answer=f"right-{level}-{i}",
            wrong_answers=(f"wrong-{i}-a", f"wrong-{i}-b", f"wrong-{i}-c"),
        )
        for i in range(n)
    ]


def make_bank(n: int = 25) -> QuestionBank:
    return QuestionBank(q for level in range(1, 6) for q in make_questions(level, n))


def answer_correct(session, clock: FakeClock | None = None, seconds: float = 1.0):
    if clock is not None:
        clock.advance(seconds)
    return session.submit_answer(session.get_current_question().correct_answer)


def answer_wrong(session, clock: FakeClock | None = None, seconds: float = 1.0):
    if clock is not None:
        clock.advance(seconds)
    return session.submit_answer("not-the-answer")
