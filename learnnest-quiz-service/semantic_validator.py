"""
Model-driven fact and quality check of candidate questions against retrieved context
"""
import json
import logging
from typing import Any, List, Optional, Sequence

from config import settings
from exceptions import LearnNestError, SemanticValidationError
from json_parsing import parse_json_array
from llm_clients import TextGenerator
from models import QuizQuestion, ValidationVerdict

logger = logging.getLogger(__name__)


class SemanticValidator:
    """Single batched validation request to the secondary model"""

    def __init__(self, generator: TextGenerator, prompt_max_chars: Optional[int] = None):
        self.generator = generator
        self.prompt_max_chars = prompt_max_chars or settings.PROMPT_MAX_CHARS

    async def validate(self, questions: Sequence[QuizQuestion], rag_context: str,
                       language_code: str = "en") -> List[ValidationVerdict]:
        """
        One verdict per question, positionally aligned with `questions`

        Raises:
            SemanticValidationError: the call failed or the response did not
                line up with the questions
        """
        if not questions:
            return []

        prompt = self._get_validation_prompt(questions, rag_context, language_code)
        try:
            content = await self.generator.complete(prompt, temperature=0.0)
            entries = parse_json_array(content)
        except LearnNestError as e:
            raise SemanticValidationError(technical_details=e.message) from e
        except Exception as e:
            raise SemanticValidationError(technical_details=f"{type(e).__name__}: {e}") from e

        if len(entries) != len(questions):
            raise SemanticValidationError(
                technical_details=f"Expected {len(questions)} verdicts, got {len(entries)}"
            )

        verdicts = [self._to_verdict(entry, question) for entry, question in zip(entries, questions)]
        invalid = sum(1 for v in verdicts if not v.valid)
        logger.info(f"Semantic validation: {len(verdicts) - invalid}/{len(verdicts)} valid")
        return verdicts

    def _get_validation_prompt(self, questions: Sequence[QuizQuestion], rag_context: str,
                               language_code: str) -> str:
        context = (rag_context or "")[:self.prompt_max_chars]
        questions_json = json.dumps(
            [q.model_dump(by_alias=True, exclude_none=True) for q in questions],
            ensure_ascii=False
        )
        return f'''You are validating a quiz. For each question, return JSON with an array of objects: {{ valid: boolean, reasons: string[] }}.
Criteria: factual correctness against CONTEXT, no harmful or biased content, appropriate difficulty, MCQ distractors plausible/non-trivial, clear plain-language phrasing in {language_code}, and answer/explanation alignment. If invalid, list reasons succinctly.
CONTEXT (authoritative, use only this to fact-check):
"""
{context}
"""

QUESTIONS JSON:
{questions_json}

Return ONLY JSON array like: [{{"valid":true,"reasons":[]}}, ...]'''

    def _to_verdict(self, entry: Any, question: QuizQuestion) -> ValidationVerdict:
        if not isinstance(entry, dict):
            raise SemanticValidationError(
                technical_details=f"Verdict for {question.id} is a {type(entry).__name__}, not an object"
            )
        reasons = entry.get("reasons") or []
        if isinstance(reasons, str):
            reasons = [reasons]
        return ValidationVerdict(
            question_id=question.id,
            valid=bool(entry.get("valid")),
            reasons=[str(r) for r in reasons],
        )
