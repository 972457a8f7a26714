"""
Merge of structural and semantic verdicts into the final question list
"""
import logging
from typing import List, Optional, Sequence

from models import QuizQuestion, SelectionResult, ValidationIssue, ValidationVerdict

logger = logging.getLogger(__name__)


def select_questions(questions: Sequence[QuizQuestion],
                     structural_reasons: Sequence[List[str]],
                     semantic_verdicts: Optional[Sequence[ValidationVerdict]],
                     requested_count: int) -> SelectionResult:
    """
    Keep questions that passed both validators, up to requested_count.

    A question is accepted when its semantic verdict is valid and it has no
    structural or semantic reasons. Order is preserved. When nothing survives
    but candidates exist, the requested_count candidates with the fewest
    structural issues are returned instead (stable on ties).
    """
    accepted = []
    rejected = []

    for idx, question in enumerate(questions):
        structural = list(structural_reasons[idx]) if idx < len(structural_reasons) else []
        if semantic_verdicts is not None and idx < len(semantic_verdicts):
            verdict = semantic_verdicts[idx]
        else:
            verdict = ValidationVerdict(question_id=question.id)

        combined = ValidationVerdict(question_id=question.id, reasons=structural).merge(verdict)
        if combined.valid and not combined.reasons:
            accepted.append(question)
        else:
            rejected.append(ValidationIssue(id=question.id, reasons=combined.reasons))

    final = accepted[:max(requested_count, 0)]
    fallback_used = False

    if not final and questions and requested_count > 0:
        ranked = sorted(
            range(len(questions)),
            key=lambda i: len(structural_reasons[i]) if i < len(structural_reasons) else 0
        )
        final = [questions[i] for i in ranked[:requested_count]]
        fallback_used = True
        logger.warning(
            f"All {len(questions)} candidates rejected; falling back to "
            f"{len(final)} with fewest structural issues"
        )

    return SelectionResult(accepted=final, rejected=rejected, fallback_used=fallback_used)
