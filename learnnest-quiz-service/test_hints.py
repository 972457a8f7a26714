"""Tests for progressive hint generation."""
import asyncio

import pytest

from conftest import FakeGenerator, make_question
from exceptions import FailedPreconditionError, GenerationParseError, InvalidArgumentError
from hints import generate_question_hint


def test_hint_response_is_parsed():
    generator = FakeGenerator(['```json\n{"hints": ["Think about light", "Chloroplasts"], '
                               '"explanation": "Light energy becomes glucose."}\n```'])
    response = asyncio.run(generate_question_hint(make_question("q1"), "es", generator))

    assert response.hints == ["Think about light", "Chloroplasts"]
    assert response.explanation == "Light energy becomes glucose."
    prompt = generator.calls[0]["user_prompt"]
    assert "progressive disclosure hints in es" in prompt
    assert "(q1)" in prompt


def test_question_payload_is_truncated():
    generator = FakeGenerator(['{"hints": [], "explanation": ""}'])
    question = make_question("q1", explanation="e" * 10000)
    asyncio.run(generate_question_hint(question, "en", generator))
    assert "e" * 4001 not in generator.calls[0]["user_prompt"]


def test_missing_fields_in_reply_default_to_empty():
    response = asyncio.run(generate_question_hint(make_question(), "en", FakeGenerator(['{"hints": "One clue"}'])))
    assert response.hints == ["One clue"]
    assert response.explanation == ""


@pytest.mark.parametrize("question", [None, {}, {"questionText": ""}])
def test_missing_question_text(question):
    with pytest.raises(InvalidArgumentError):
        asyncio.run(generate_question_hint(question, "en", FakeGenerator([])))


def test_unconfigured_generator():
    with pytest.raises(FailedPreconditionError):
        asyncio.run(generate_question_hint(make_question(), "en", None))


def test_unparseable_reply_propagates():
    with pytest.raises(GenerationParseError):
        asyncio.run(generate_question_hint(make_question(), "en", FakeGenerator(["Here is a hint!"])))
