"""
Quiz question generator
Drafts structured questions for one chunk of study content, grounded in retrieved context
"""
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from config import settings
from json_parsing import parse_json_array
from llm_clients import TextGenerator
from models import BloomLevel, DifficultyLevel, QuestionType, QuizQuestion, RetrievedSource

logger = logging.getLogger(__name__)


def fallback_question_id(batch_started_ms: int, index: int) -> str:
    """Time-based id for questions the model returned without one"""
    return f"q-{batch_started_ms}-{index}"


class QuestionGenerator:
    """Prompts the primary model for a JSON array of quiz questions"""

    def __init__(self, generator: TextGenerator, prompt_max_chars: Optional[int] = None,
                 temperature: float = 0.3):
        self.generator = generator
        self.prompt_max_chars = prompt_max_chars or settings.PROMPT_MAX_CHARS
        self.temperature = temperature

    async def generate(self, chunk_text: str, rag_context: str, rag_sources: Sequence[RetrievedSource],
                       count: int, difficulty: DifficultyLevel, allowed_types: Sequence[QuestionType],
                       language_code: str = "en") -> List[QuizQuestion]:
        """
        Generate `count` questions (best effort) for one piece of study content

        Raises:
            GenerationParseError: the response could not be read as a JSON array
        """
        system_prompt = self._get_system_prompt(language_code)
        user_prompt = self._get_generation_prompt(
            chunk_text, rag_context, rag_sources, count, difficulty, allowed_types, language_code
        )

        batch_started_ms = int(time.time() * 1000)
        content = await self.generator.complete(user_prompt, system_prompt=system_prompt,
                                                temperature=self.temperature)

        questions = self._parse_batch_response(content, batch_started_ms)
        logger.info(f"Generated {len(questions)}/{count} candidate questions")
        return questions

    def _get_system_prompt(self, language_code: str) -> str:
        return (
            f"You are an expert assessment designer. Generate accessible, plain-language questions "
            f"in {language_code}. Avoid jargon unless necessary; if used, define it briefly."
        )

    def _get_generation_prompt(self, chunk_text: str, rag_context: str,
                               rag_sources: Sequence[RetrievedSource], count: int,
                               difficulty: DifficultyLevel, allowed_types: Sequence[QuestionType],
                               language_code: str) -> str:
        type_names = [QuestionType(t).value for t in allowed_types]
        source_titles = ", ".join(s.title for s in rag_sources)
        difficulty_value = DifficultyLevel(difficulty).value
        bloom_levels = "|".join(level.value for level in BloomLevel)
        limit = self.prompt_max_chars

        return f'''Create {count} quiz questions across Bloom's taxonomy (from remember to analyze), matching overall difficulty "{difficulty_value}".
Question types allowed: {", ".join(type_names)}. Use a mix. For multiple-choice, include exactly 4 options with plausible, non-overlapping distractors.

Ground your questions ONLY in the given STUDY CONTENT and RAG CONTEXT. Cite sources you used by their titles from the RAG SOURCES list.

Output strict JSON array of question objects with keys:
- id (string uuid-like)
- type (one of {" | ".join(type_names)})
- questionText (string, plain language, concise)
- options (array of 4 strings) if type is multiple-choice
- correctAnswer (string or array of strings for blanks)
- explanation (string, 1-2 sentences)
- bloomLevel ({bloom_levels})
- sources (array of {{ id, title }}) referencing items from RAG SOURCES by title
- language (BCP47 code, e.g., {language_code})
- accessibilityNotes (string explaining simplifications)

STUDY CONTENT:
"""
{chunk_text[:limit]}
"""

RAG CONTEXT:
"""
{(rag_context or "")[:limit]}
"""

RAG SOURCES: {source_titles}

Return ONLY the JSON array.'''

    def _parse_batch_response(self, content: str, batch_started_ms: int) -> List[QuizQuestion]:
        """Parse the model output and give every question a batch-unique id"""
        items = parse_json_array(content)

        questions = []
        seen_ids = set()
        for index, item in enumerate(items):
            question = self._create_question_from_data(item, index)
            if question is None:
                continue

            if not question.id or question.id in seen_ids:
                question.id = fallback_question_id(batch_started_ms, index)
            suffix = 1
            base_id = question.id
            while question.id in seen_ids:
                suffix += 1
                question.id = f"{base_id}-{suffix}"

            seen_ids.add(question.id)
            questions.append(question)

        return questions

    def _create_question_from_data(self, q_data: Any, index: int) -> Optional[QuizQuestion]:
        """Coerce one array item into a QuizQuestion, or None when it has the wrong shape"""
        if not isinstance(q_data, dict):
            logger.warning(f"Question {index}: expected an object, got {type(q_data).__name__}")
            return None

        data: Dict[str, Any] = dict(q_data)
        if data.get("id") is not None and not isinstance(data["id"], str):
            data["id"] = str(data["id"])

        try:
            return QuizQuestion.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Question {index}: dropped malformed item ({e.error_count()} errors)")
            return None
