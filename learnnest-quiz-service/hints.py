"""
Progressive disclosure hints for a single quiz question
"""
import json
import logging
from typing import Any, Dict, Optional

from exceptions import FailedPreconditionError, InvalidArgumentError
from json_parsing import parse_json_object
from llm_clients import TextGenerator
from models import HintResponse

logger = logging.getLogger(__name__)

QUESTION_PAYLOAD_MAX_CHARS = 4000


async def generate_question_hint(question: Optional[Dict[str, Any]], language_code: str,
                                 generator: Optional[TextGenerator]) -> HintResponse:
    """
    Ask the secondary model for short hints plus a final explanation

    Raises:
        InvalidArgumentError: question or its questionText missing
        FailedPreconditionError: no generator configured
        GenerationParseError: the model reply is not a JSON object
    """
    if not question or not question.get("questionText"):
        raise InvalidArgumentError("Missing question")
    if generator is None:
        raise FailedPreconditionError("Gemini not configured")

    payload = json.dumps(question, ensure_ascii=False, default=str)
    prompt = (
        f"Provide progressive disclosure hints in {language_code or 'en'} for the quiz question below "
        'as JSON with keys: {"hints":["small nudge","bigger clue"], "explanation":"final explanation"}. '
        "Keep hints short and avoid revealing the full answer until the explanation.\n\n"
        f"{payload[:QUESTION_PAYLOAD_MAX_CHARS]}"
    )

    content = await generator.complete(prompt)
    parsed = parse_json_object(content)
    logger.debug(f"Hint generated with {len(parsed.get('hints') or [])} hints")
    return HintResponse(
        hints=parsed.get("hints") or [],
        explanation=str(parsed.get("explanation") or ""),
    )
