import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from formulatrivia.engine import ConfigurationError
from formulatrivia.questions import Question, QuestionBank, load_questions

SAMPLE = Path(__file__).resolve().parents[1] / "questions.yml"


class QuestionTests(unittest.TestCase):
    def test_needs_three_wrong_answers(self) -> None:
        with self.assertRaises(ValidationError):
            Question(id="1", level=1, question="?", correct_answer="a", wrong_answers=["b", "c"])

    def test_wrong_answer_must_differ(self) -> None:
        with self.assertRaises(ValidationError):
            Question(id="1", level=1, question="?", correct_answer="a", wrong_answers=["a", "b", "c"])

    def test_from_json_accepts_camel_case(self) -> None:
        q = Question.from_json(
            {"id": 42, "level": 3, "question": "?", "correctAnswer": "a", "wrongAnswers": ["b", "c", "d"]}
        )
        self.assertEqual(q.id, "42")
        self.assertEqual(q.correct_answer, "a")
        self.assertEqual(q.all_answers, ["a", "b", "c", "d"])
        self.assertEqual(q.to_json()["wrong_answers"], ["b", "c", "d"])


class LoaderTests(unittest.TestCase):
    def test_sample_bank(self) -> None:
        bank = QuestionBank.from_file(SAMPLE)
        self.assertEqual(bank.levels(), [1, 2, 3, 4, 5])
        self.assertEqual(bank.count(1), 3)
        self.assertEqual(len(bank), 15)

    def test_json_list(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "q.json"
            path.write_text(
                json.dumps([{"id": "x", "level": 2, "question": "?", "correct_answer": "a", "wrong_answers": ["b", "c", "d"]}]),
                encoding="utf-8",
            )
            qs = load_questions(path)
            self.assertEqual([q.id for q in qs], ["x"])

    def test_errors(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_questions("/nope/questions.yml")
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.yml"
            path.write_text("questions:\n  - id: 1\n    level: 9\n    question: q\n", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                load_questions(path)

    def test_for_level(self) -> None:
        bank = QuestionBank()
        self.assertEqual(bank.for_level(4), [])
        with self.assertRaises(ConfigurationError):
            bank.for_level(6)
        q = Question(id="1", level=4, question="?", correct_answer="a", wrong_answers=["b", "c", "d"])
        bank.add(q)
        got = bank.for_level(4)
        got.clear()
        self.assertEqual(bank.count(4), 1)


if __name__ == "__main__":
    unittest.main()
