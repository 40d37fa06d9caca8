from __future__ import annotations

"""Question bank loader (YAML or JSON).

Documents look like ``{"version": 1, "questions": [...]}``; a bare list of
questions is accepted too.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml
from pydantic import ValidationError

from ..engine.errors import ConfigurationError
from ..engine.levels import MAX_LEVEL, MIN_LEVEL
from .schema import Question


def _read_document(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Question file not found: {path}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not parse question file {path}: {exc}") from exc


def load_questions(path: str | Path) -> List[Question]:
    data = _read_document(Path(path))
    if isinstance(data, dict):
        items = data.get("questions") or []
    elif isinstance(data, list):
        items = data
    else:
        items = []
    out: List[Question] = []
    for i, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Question #{i} in {path} is not a mapping")
        try:
            out.append(Question.from_json(raw))
        except ValidationError as exc:
            raise ConfigurationError(f"Question #{i} in {path} is invalid: {exc}") from exc
    return out


class QuestionBank:
    """In-memory questions grouped by level, kept in load order."""

    def __init__(self, questions: Iterable[Question] = ()) -> None:
        self._by_level: Dict[int, List[Question]] = {}
        for q in questions:
            self.add(q)

    @classmethod
    def from_file(cls, path: str | Path) -> "QuestionBank":
        return cls(load_questions(path))

    def add(self, question: Question) -> None:
        self._by_level.setdefault(question.level, []).append(question)

    def for_level(self, level: int) -> List[Question]:
        if not (MIN_LEVEL <= int(level) <= MAX_LEVEL):
            raise ConfigurationError(f"Level must be between {MIN_LEVEL} and {MAX_LEVEL}")
        return list(self._by_level.get(int(level), []))

    def levels(self) -> List[int]:
        return sorted(lvl for lvl, qs in self._by_level.items() if qs)

    def count(self, level: int) -> int:
        return len(self._by_level.get(int(level), []))

    def __len__(self) -> int:
        return sum(len(qs) for qs in self._by_level.values())
