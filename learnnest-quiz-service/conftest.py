"""
Shared fakes for the quiz service tests (no network access)
"""
import json
import re
from typing import Callable, List, Optional, Union

import pytest

from audit import SQLiteAuditStore
from models import VectorMatch


def make_question(qid: str = "q1", qtype: str = "multiple-choice", **overrides) -> dict:
    """Wire-format question as a model would return it"""
    data = {
        "id": qid,
        "type": qtype,
        "questionText": f"Which statement about photosynthesis is correct ({qid})?",
        "correctAnswer": "Plants convert light into chemical energy",
        "explanation": "Photosynthesis stores light energy in glucose.",
        "bloomLevel": "understand",
        "sources": [{"id": "doc-1", "title": "Biology 101"}],
        "language": "en",
        "accessibilityNotes": "Plain language",
    }
    if qtype == "multiple-choice":
        data["options"] = [
            "Plants convert light into chemical energy",
            "Plants absorb oxygen to make sugar",
            "Roots produce chlorophyll",
            "Leaves store water only",
        ]
    data.update(overrides)
    return data


class FakeGenerator:
    """
    TextGenerator double

    `responses` is either a list consumed in order (items may be exceptions
    to raise) or a callable (user_prompt, system_prompt) -> str.
    """

    def __init__(self, responses: Union[List, Callable, None] = None):
        self.responses = responses if responses is not None else []
        self.calls = []

    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None,
                       temperature: float = 0.3) -> str:
        self.calls.append({"user_prompt": user_prompt, "system_prompt": system_prompt,
                           "temperature": temperature})
        if callable(self.responses):
            response = self.responses(user_prompt, system_prompt)
        else:
            response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeEmbedder:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.inputs = []

    async def embed(self, text: str) -> List[float]:
        self.inputs.append(text)
        if self.error:
            raise self.error
        return [0.1] * 8


class FakeVectorIndex:
    def __init__(self, matches: Optional[List[VectorMatch]] = None, error: Optional[Exception] = None):
        self.matches = matches or []
        self.error = error
        self.queries = []

    async def query(self, vector, top_k: int = 5, include_metadata: bool = True) -> List[VectorMatch]:
        self.queries.append({"vector": vector, "top_k": top_k})
        if self.error:
            raise self.error
        return list(self.matches)


def primary_responder(user_prompt: str, system_prompt: Optional[str] = None) -> str:
    """Answers keyword prompts with a seed and generation prompts with N valid questions"""
    if user_prompt.startswith("Extract 5-8 concise keywords"):
        return "photosynthesis, chlorophyll, light energy"
    match = re.search(r"Create (\d+) quiz questions", user_prompt)
    count = int(match.group(1)) if match else 1
    # Distinct ids per call so duplicate handling is not exercised by accident
    primary_responder.calls += 1
    return json.dumps([make_question(f"c{primary_responder.calls}-q{i}") for i in range(count)])


primary_responder.calls = 0


def all_valid_responder(user_prompt: str, system_prompt: Optional[str] = None) -> str:
    """Semantic validator double: one valid verdict per question in the prompt"""
    count = user_prompt.count('"questionText"')
    return json.dumps([{"valid": True, "reasons": []} for _ in range(count)])


@pytest.fixture
def sample_matches():
    return [
        VectorMatch(id="doc-1", score=0.91, metadata={"text": "Chlorophyll absorbs light.",
                                                       "title": "Biology 101", "url": "https://example.org/bio"}),
        VectorMatch(id="doc-2", score=0.72, metadata={"text": "Glucose stores energy."}),
    ]


@pytest.fixture
def audit_store(tmp_path):
    return SQLiteAuditStore(db_path=str(tmp_path / "audit.db"))
