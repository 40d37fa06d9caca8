from .schema import Question
from .bank import QuestionBank, load_questions

__all__ = ["Question", "QuestionBank", "load_questions"]
