"""
Quiz attempt scoring, difficulty recommendation and focus areas
"""
import asyncio
import json
import logging
from typing import Any, List, Optional, Sequence

from audit import SQLiteAuditStore
from exceptions import InvalidArgumentError
from json_parsing import parse_json_array
from llm_clients import TextGenerator
from models import DifficultyLevel, QuizAttemptRequest, QuizAttemptResult, QuizQuestion

logger = logging.getLogger(__name__)

FOCUS_PAYLOAD_MAX_CHARS = 8000
MAX_FOCUS_AREAS = 3


def calculate_accuracy(correct_count: int, total_count: int) -> float:
    """Percentage of correct answers (0 when there were no questions)"""
    if total_count <= 0:
        return 0.0
    return (correct_count / total_count) * 100


def recommend_difficulty(accuracy: float) -> DifficultyLevel:
    if accuracy >= 70:
        return DifficultyLevel.HARD
    if accuracy < 50:
        return DifficultyLevel.EASY
    return DifficultyLevel.MEDIUM


def is_answer_correct(question: QuizQuestion, user_answer: Any) -> bool:
    """
    Multi-part answers are correct when every part appears in the user's
    answer; single answers need a case-insensitive exact match.
    """
    answer = "" if user_answer is None else str(user_answer)
    expected = question.correct_answer
    if isinstance(expected, list):
        lowered = answer.lower()
        return all(part.lower().strip() in lowered for part in expected)
    return answer.lower().strip() == str(expected).lower().strip()


def incorrect_items(questions: Sequence[QuizQuestion], answers: Sequence[Any]) -> List[dict]:
    items = []
    for idx, question in enumerate(questions):
        user_answer = answers[idx] if idx < len(answers) else None
        if not is_answer_correct(question, user_answer):
            items.append({
                "questionText": question.question_text,
                "explanation": question.explanation or "",
            })
    return items


async def suggest_focus_areas(generator: Optional[TextGenerator], questions: Sequence[QuizQuestion],
                              answers: Sequence[Any]) -> List[str]:
    """Up to three study focus areas drawn from the missed questions; [] on any failure"""
    if generator is None or not questions:
        return []

    payload = json.dumps(incorrect_items(questions, answers), ensure_ascii=False)
    prompt = (
        "Given the following incorrectly answered questions with explanations, list 3 concise "
        "focus areas (concepts or skills) to improve, as a JSON array of strings.\n\n"
        f"{payload[:FOCUS_PAYLOAD_MAX_CHARS]}"
    )
    try:
        content = await generator.complete(prompt)
        areas = parse_json_array(content)
    except Exception as e:
        logger.warning(f"Focus area generation failed: {e}")
        return []

    return [str(area) for area in areas[:MAX_FOCUS_AREAS]]


async def submit_quiz_attempt(request: QuizAttemptRequest, focus_generator: Optional[TextGenerator],
                              store: SQLiteAuditStore) -> QuizAttemptResult:
    """
    Score a submitted attempt, persist it and fold it into the quiz aggregate

    Raises:
        InvalidArgumentError: userId, quizId, answers, correctCount or totalCount missing
    """
    if (not request.user_id or not request.quiz_id or request.answers is None
            or request.correct_count is None or request.total_count is None):
        raise InvalidArgumentError("Missing or invalid fields")

    accuracy = calculate_accuracy(request.correct_count, request.total_count)
    recommended = recommend_difficulty(accuracy)
    focus_areas = await suggest_focus_areas(focus_generator, request.questions, request.answers)

    attempt_id = await asyncio.to_thread(store.record_quiz_attempt, request.user_id, request.quiz_id, {
        "answers": request.answers,
        "correctCount": request.correct_count,
        "totalCount": request.total_count,
        "accuracy": accuracy,
        "timePerQuestion": request.time_per_question,
        "confidence": request.confidence,
    })
    stats = await asyncio.to_thread(store.update_quiz_stats, request.user_id, request.quiz_id, accuracy)
    logger.info(f"Attempt {attempt_id} on quiz {request.quiz_id}: accuracy={accuracy:.1f}% "
                f"attempts={stats['completedAttempts']}")

    return QuizAttemptResult(
        attempt_id=attempt_id,
        accuracy=accuracy,
        recommended_difficulty=recommended,
        focus_areas=focus_areas,
    )
