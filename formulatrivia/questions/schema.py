from __future__ import annotations

"""Question record consumed by the level session engine."""

from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..engine.levels import MAX_LEVEL, MIN_LEVEL


class Question(BaseModel):
    """A multiple-choice question: one correct answer and exactly three wrong ones."""

    model_config = ConfigDict(frozen=True)

    id: str
    level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)
    level_name: str = ""
    question: str
    correct_answer: str
    wrong_answers: Tuple[str, str, str]
    question_type: str = "text"

    @field_validator("wrong_answers", mode="before")
    @classmethod
    def _exactly_three(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)) and len(v) != 3:
            raise ValueError("wrong_answers must hold exactly 3 answers")
        return v

    @model_validator(mode="after")
    def _distinct_from_correct(self) -> "Question":
        if self.correct_answer in self.wrong_answers:
            raise ValueError("a wrong answer duplicates the correct answer")
        return self

    @property
    def all_answers(self) -> List[str]:
        return [self.correct_answer, *self.wrong_answers]

    def to_json(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["wrong_answers"] = list(self.wrong_answers)
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Question":
        # camelCase keys come from exports of the web version
        aliases = {
            "levelName": "level_name",
            "correctAnswer": "correct_answer",
            "wrongAnswers": "wrong_answers",
            "questionType": "question_type",
        }
        norm = {aliases.get(k, k): v for k, v in data.items()}
        norm["id"] = str(norm.get("id", ""))
        return cls.model_validate(norm)
