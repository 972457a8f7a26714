"""
Validated quiz generation pipeline

Sequence per run: optional context retrieval -> chunking -> quota split ->
per-chunk generation (+ one supplemental pass on shortfall) -> structural
checks -> semantic validation -> merge/fallback selection -> result + audit.

Optional sub-steps never abort a run: their failures become degraded entries
in the run's diagnostic trail and the run continues with a default value.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from audit import USAGE_LOG_COLLECTION, AuditStore
from chunking import chunk_text, distribute_counts
from config import settings
from exceptions import FailedPreconditionError, InvalidArgumentError, UnauthenticatedError
from generator import QuestionGenerator
from llm_clients import Embedder, TextGenerator
from models import (
    GenerateQuizRequest, QuizConfig, QuizQuestion, QuizResult, RetrievalResult,
    StepDiagnostic, StepStatus, ValidationReport, ValidationVerdict
)
from quality_validator import StructuralValidator
from rag_pipeline import ContextRetriever, VectorIndex
from selector import select_questions
from semantic_validator import SemanticValidator

logger = logging.getLogger(__name__)

QUIZ_GENERATION_KIND = "quiz-generation"


@dataclass
class StepOutcome:
    """Result of an optional sub-step: the value, or a default plus why"""
    value: Any
    status: StepStatus = StepStatus.OK
    detail: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.status is StepStatus.DEGRADED


def format_quiz_title(difficulty: str, when: Optional[datetime] = None) -> str:
    """Human-readable title with a US-style local timestamp"""
    when = when or datetime.now()
    hour = when.hour % 12 or 12
    stamp = f"{when.month}/{when.day}/{when.year}, {hour}:{when:%M:%S} {when:%p}"
    return f"AI Quiz ({difficulty}) - {stamp}"


def ensure_unique_ids(questions: List[QuizQuestion]) -> List[QuizQuestion]:
    """Suffix repeated ids (-2, -3, ...) so ids are unique across the whole run"""
    seen = set()
    for question in questions:
        if question.id in seen:
            n = 2
            while f"{question.id}-{n}" in seen:
                n += 1
            question.id = f"{question.id}-{n}"
        seen.add(question.id)
    return questions


class QuizPipeline:
    """Orchestrates one validated quiz generation per `run` call"""

    def __init__(self, primary: Optional[TextGenerator], secondary: Optional[TextGenerator],
                 embedder: Optional[Embedder] = None, vector_index: Optional[VectorIndex] = None,
                 audit_store: Optional[AuditStore] = None, chunk_size: Optional[int] = None,
                 max_chunks: Optional[int] = None, supplemental_max_chars: Optional[int] = None,
                 model_label: str = "gpt-4o+gemini-validate"):
        self.primary = primary
        self.secondary = secondary
        self.embedder = embedder
        self.vector_index = vector_index
        self.audit_store = audit_store
        self.chunk_size = chunk_size or settings.CHUNK_SIZE
        self.max_chunks = max_chunks or settings.MAX_CHUNKS
        self.supplemental_max_chars = supplemental_max_chars or settings.SUPPLEMENTAL_MAX_CHARS
        self.model_label = model_label
        self.structural_validator = StructuralValidator()

    async def run(self, source_text: Optional[str], user_id: Optional[str],
                  config: Optional[QuizConfig] = None) -> QuizResult:
        """
        Generate, validate and select quiz questions for source_text

        Raises:
            InvalidArgumentError: missing text or userId
            FailedPreconditionError: primary or secondary generator not configured
        """
        config = config or QuizConfig(number_of_questions=settings.DEFAULT_NUM_QUESTIONS)
        if not source_text or not user_id:
            raise InvalidArgumentError("Missing text or userId")
        if self.primary is None:
            raise FailedPreconditionError("OpenAI not configured")
        if self.secondary is None:
            raise FailedPreconditionError("Gemini not configured")

        requested = config.number_of_questions
        diagnostics: List[StepDiagnostic] = []
        question_generator = QuestionGenerator(self.primary)
        logger.info(f"Quiz generation started: user={user_id} requested={requested} "
                    f"difficulty={config.difficulty.value} chars={len(source_text)}")

        # 1. Retrieval (optional)
        retrieval = await self._run_optional(
            "retrieval", diagnostics, RetrievalResult(), self._retrieve, source_text
        )
        rag: RetrievalResult = retrieval.value

        # 2-3. Chunk and split the quota
        chunks = chunk_text(source_text, self.chunk_size)
        processed = chunks[:self.max_chunks]
        if len(chunks) > len(processed):
            logger.info(f"Processing {len(processed)} of {len(chunks)} chunks")
        quotas = distribute_counts(requested, len(processed), [max(1, c.weight) for c in processed])

        # 4. Per-chunk generation, in textual order
        questions: List[QuizQuestion] = []
        for i, (chunk, quota) in enumerate(zip(processed, quotas)):
            if quota <= 0:
                continue
            outcome = await self._run_optional(
                f"generation[chunk {i}]", diagnostics, [],
                question_generator.generate, chunk.text, rag.context, rag.sources, quota,
                config.difficulty, config.question_types, config.language_code
            )
            questions.extend(outcome.value)

        # 5. One supplemental pass over the (truncated) full text
        if len(questions) < requested:
            needed = requested - len(questions)
            logger.info(f"Short by {needed} questions; running supplemental pass")
            outcome = await self._run_optional(
                "generation[supplemental]", diagnostics, [],
                question_generator.generate, source_text[:self.supplemental_max_chars], rag.context,
                rag.sources, needed, config.difficulty, config.question_types, config.language_code
            )
            questions.extend(outcome.value)

        ensure_unique_ids(questions)

        # 6. Structural checks
        structural = self.structural_validator.check_all(questions)

        # 7. Semantic validation (optional; defaults to all valid)
        verdicts = [ValidationVerdict(question_id=q.id) for q in questions]
        if questions:
            semantic = await self._run_optional(
                "semantic_validation", diagnostics, None,
                SemanticValidator(self.secondary).validate, questions, rag.context, config.language_code
            )
            if semantic.value is not None:
                verdicts = semantic.value

        # 8. Merge and select
        selection = select_questions(questions, structural, verdicts, requested)
        final = selection.accepted
        if selection.fallback_used:
            diagnostics.append(StepDiagnostic(
                step="selection", status=StepStatus.DEGRADED,
                detail="no candidate passed validation; kept those with fewest structural issues"
            ))

        # 9. Audit (optional)
        await self._run_optional(
            "audit", diagnostics, None, self._emit_audit, user_id, requested, len(final)
        )

        # 10. Result
        result = QuizResult(
            title=format_quiz_title(config.difficulty.value),
            difficulty=config.difficulty,
            requested_count=requested,
            question_count=len(final),
            questions=final,
            language=config.language_code,
            content_source=config.content_source,
            validation_report=ValidationReport(
                total=len(questions),
                passed=len(final),
                filtered_out=len(questions) - len(final),
                issues=selection.rejected,
            ),
            retrieved_sources=rag.sources,
            diagnostics=diagnostics,
        )
        logger.info(f"Quiz generation completed: {len(final)}/{requested} questions "
                    f"({len(questions)} generated, {len(selection.rejected)} rejected)")
        return result

    async def _run_optional(self, step: str, diagnostics: List[StepDiagnostic], default: Any,
                            func: Callable[..., Awaitable[Any]], *args) -> StepOutcome:
        """Run a best-effort sub-step, turning any failure into a degraded outcome"""
        try:
            outcome = StepOutcome(value=await func(*args))
        except Exception as e:
            logger.warning(f"Step '{step}' degraded: {type(e).__name__}: {e}")
            outcome = StepOutcome(value=default, status=StepStatus.DEGRADED,
                                  detail=f"{type(e).__name__}: {e}")
        diagnostics.append(StepDiagnostic(step=step, status=outcome.status, detail=outcome.detail))
        return outcome

    async def _retrieve(self, source_text: str) -> RetrievalResult:
        if self.embedder is None or self.vector_index is None:
            raise RuntimeError("vector index not configured")
        retriever = ContextRetriever(self.primary, self.embedder, self.vector_index)
        return await retriever.retrieve(source_text)

    async def _emit_audit(self, user_id: str, requested: int, returned: int) -> Optional[str]:
        if self.audit_store is None:
            raise RuntimeError("audit store not configured")
        return await asyncio.to_thread(self.audit_store.append, USAGE_LOG_COLLECTION, {
            "userId": user_id,
            "modelUsed": self.model_label,
            "kind": QUIZ_GENERATION_KIND,
            "nRequested": requested,
            "nReturned": returned,
            "timestamp": datetime.now().isoformat(),
        })


async def generate_validated_quiz(request: GenerateQuizRequest, caller_id: Optional[str],
                                  pipeline: QuizPipeline) -> QuizResult:
    """Caller-facing operation: authenticated, validated quiz generation"""
    if not caller_id:
        raise UnauthenticatedError()
    return await pipeline.run(request.text, request.user_id, request)


def create_pipeline() -> QuizPipeline:
    """Build a pipeline from environment configuration"""
    from audit import SQLiteAuditStore
    from llm_clients import create_gemini_generator, create_openai_embedder, create_openai_generator
    from rag_pipeline import ChromaVectorIndex

    primary = create_openai_generator()
    embedder = create_openai_embedder()
    vector_index = None
    if embedder is not None:
        try:
            vector_index = ChromaVectorIndex()
        except Exception as e:
            logger.warning(f"Vector index unavailable, retrieval disabled: {e}")

    return QuizPipeline(
        primary=primary,
        secondary=create_gemini_generator(),
        embedder=embedder,
        vector_index=vector_index,
        audit_store=SQLiteAuditStore(),
    )
