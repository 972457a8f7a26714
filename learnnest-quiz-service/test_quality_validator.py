"""Tests for structural question checks."""
from conftest import make_question
from models import QuizQuestion
from quality_validator import (
    EXPLANATION_TOO_LONG, MCQ_OPTION_COUNT, MCQ_OPTIONS_NOT_UNIQUE, QUESTION_TEXT_INVALID,
    StructuralValidator
)


def _question(**overrides) -> QuizQuestion:
    return QuizQuestion.model_validate(make_question(**overrides))


def test_well_formed_mcq_passes():
    assert StructuralValidator().check(_question()) == []


def test_short_question_text():
    assert StructuralValidator().check(_question(questionText="Why")) == [QUESTION_TEXT_INVALID]


def test_missing_question_text():
    assert QUESTION_TEXT_INVALID in StructuralValidator().check(_question(questionText=None))


def test_mcq_with_three_options():
    issues = StructuralValidator().check(_question(options=["A", "B", "C"]))
    assert MCQ_OPTION_COUNT in issues
    assert MCQ_OPTIONS_NOT_UNIQUE in issues


def test_mcq_without_options():
    assert StructuralValidator().check(_question(options=None)) == [MCQ_OPTION_COUNT]


def test_mcq_duplicate_options_ignore_case_and_whitespace():
    issues = StructuralValidator().check(_question(options=["Mitosis", " mitosis ", "Meiosis", "Osmosis"]))
    assert issues == [MCQ_OPTIONS_NOT_UNIQUE]


def test_long_explanation():
    issues = StructuralValidator().check(_question(explanation="x" * 401))
    assert issues == [EXPLANATION_TOO_LONG]


def test_non_mcq_skips_option_checks():
    question = _question(qtype="true-false", correctAnswer=True)
    assert question.correct_answer == "true"
    assert StructuralValidator().check(question) == []


def test_check_all_preserves_order():
    questions = [_question(qid="a"), _question(qid="b", questionText="Hi")]
    assert StructuralValidator().check_all(questions) == [[], [QUESTION_TEXT_INVALID]]


def test_repeated_checks_are_identical():
    validator = StructuralValidator()
    question = _question(options=["Paris", "paris ", "London", "Berlin"], correctAnswer="Paris")
    first = validator.check(question)
    second = validator.check(question)
    assert first == second == [MCQ_OPTIONS_NOT_UNIQUE]
    assert question.options == ["Paris", "paris ", "London", "Berlin"]
