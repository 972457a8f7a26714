"""
Structural quality checks for candidate quiz questions
Deterministic and local: no I/O, no model calls
"""
from typing import List, Sequence

from models import QuizQuestion

QUESTION_TEXT_INVALID = "Question text too short/invalid"
MCQ_OPTION_COUNT = "MCQ must have exactly 4 options"
MCQ_OPTIONS_NOT_UNIQUE = "MCQ options must be unique"
EXPLANATION_TOO_LONG = "Explanation too long"


class StructuralValidator:
    """Shape checks applied to every candidate question"""

    def __init__(self, min_question_length: int = 5, option_count: int = 4,
                 max_explanation_length: int = 400):
        self.min_question_length = min_question_length
        self.option_count = option_count
        self.max_explanation_length = max_explanation_length

    def check(self, question: QuizQuestion) -> List[str]:
        """Return the structural issues for one question (empty list means none)"""
        issues = []

        text = question.question_text
        if not text or not isinstance(text, str) or len(text) < self.min_question_length:
            issues.append(QUESTION_TEXT_INVALID)

        if question.is_multiple_choice:
            options = question.options
            if not isinstance(options, list) or len(options) != self.option_count:
                issues.append(MCQ_OPTION_COUNT)
            if isinstance(options, list):
                normalized = {option.strip().lower() for option in options}
                if len(normalized) != self.option_count:
                    issues.append(MCQ_OPTIONS_NOT_UNIQUE)

        if question.explanation and len(question.explanation) > self.max_explanation_length:
            issues.append(EXPLANATION_TOO_LONG)

        return issues

    def check_all(self, questions: Sequence[QuizQuestion]) -> List[List[str]]:
        """Structural issues for each question, in input order"""
        return [self.check(question) for question in questions]
