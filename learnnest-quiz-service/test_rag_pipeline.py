"""Tests for context retrieval and the ChromaDB vector index."""
import asyncio
import threading

import chromadb
from chromadb.config import Settings as ChromaSettings
import pytest

from conftest import FakeEmbedder, FakeGenerator, FakeVectorIndex
from exceptions import RetrievalError
from models import VectorMatch
from rag_pipeline import PASSAGE_DELIMITER, ChromaVectorIndex, ContextRetriever


def test_retrieve_builds_context_and_sources(sample_matches):
    generator = FakeGenerator(["photosynthesis, chlorophyll"])
    embedder = FakeEmbedder()
    index = FakeVectorIndex(sample_matches)

    result = asyncio.run(ContextRetriever(generator, embedder, index, top_k=5).retrieve("Plants make food."))

    assert result.context == "Chlorophyll absorbs light." + PASSAGE_DELIMITER + "Glucose stores energy."
    assert [s.id for s in result.sources] == ["doc-1", "doc-2"]
    assert result.sources[0].title == "Biology 101"
    assert result.sources[0].url == "https://example.org/bio"
    assert result.sources[1].title == "Untitled Source"
    assert result.sources[1].url is None
    assert embedder.inputs == ["photosynthesis, chlorophyll"]
    assert index.queries[0]["top_k"] == 5
    assert generator.calls[0]["temperature"] == 0.2


def test_seed_is_truncated_before_embedding():
    embedder = FakeEmbedder()
    retriever = ContextRetriever(FakeGenerator(["k" * 100]), embedder, FakeVectorIndex(), seed_max_chars=10)
    asyncio.run(retriever.retrieve("text"))
    assert embedder.inputs == ["k" * 10]


def test_matches_without_text_still_count_as_sources():
    matches = [VectorMatch(id="doc-9", score=0.0, metadata={"title": "Empty"})]
    result = asyncio.run(ContextRetriever(FakeGenerator(["seed"]), FakeEmbedder(),
                                          FakeVectorIndex(matches)).retrieve("text"))
    assert result.context == ""
    assert result.sources[0].title == "Empty"
    assert result.sources[0].score is None


@pytest.mark.parametrize("generator,embedder,index", [
    (FakeGenerator([TimeoutError("slow")]), FakeEmbedder(), FakeVectorIndex()),
    (FakeGenerator(["seed"]), FakeEmbedder(error=RuntimeError("embed down")), FakeVectorIndex()),
    (FakeGenerator(["seed"]), FakeEmbedder(), FakeVectorIndex(error=ConnectionError("index down"))),
])
def test_any_failure_becomes_retrieval_error(generator, embedder, index):
    with pytest.raises(RetrievalError):
        asyncio.run(ContextRetriever(generator, embedder, index).retrieve("text"))


def test_chroma_index_round_trip(tmp_path):
    client = chromadb.PersistentClient(path=str(tmp_path / "vectordb"),
                                       settings=ChromaSettings(anonymized_telemetry=False))
    index = ChromaVectorIndex(collection_name="test-corpus", client=client)
    ids = index.add_passages(
        [{"id": "p1", "text": "Mitochondria produce ATP.", "title": "Cell Biology", "url": "https://example.org/cell"},
         {"id": "p2", "text": "Rivers erode valleys."}],
        [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
    )
    assert ids == ["p1", "p2"]

    matches = asyncio.run(index.query([1.0, 0.0, 0.0], top_k=1))
    assert len(matches) == 1
    assert matches[0].id == "p1"
    assert matches[0].metadata["text"] == "Mitochondria produce ATP."
    assert matches[0].metadata["title"] == "Cell Biology"
    assert matches[0].score == pytest.approx(1.0, abs=1e-5)


def test_chroma_add_passages_requires_matching_embeddings(tmp_path):
    client = chromadb.PersistentClient(path=str(tmp_path / "vectordb"),
                                       settings=ChromaSettings(anonymized_telemetry=False))
    index = ChromaVectorIndex(collection_name="test-corpus", client=client)
    with pytest.raises(ValueError):
        index.add_passages([{"text": "a"}], [])


def test_chroma_query_runs_off_the_event_loop_thread():
    class RecordingCollection:
        def __init__(self):
            self.threads = []

        def query(self, query_embeddings, n_results, include):
            self.threads.append(threading.get_ident())
            return {"ids": [["p1"]], "documents": [["Mitochondria produce ATP."]],
                    "distances": [[0.25]], "metadatas": [[{"title": "Cell Biology"}]]}

    class RecordingClient:
        def __init__(self):
            self.collection = RecordingCollection()

        def get_or_create_collection(self, name, metadata=None):
            return self.collection

    client = RecordingClient()
    matches = asyncio.run(ChromaVectorIndex(collection_name="test-corpus", client=client).query([1.0, 0.0]))

    assert client.collection.threads and client.collection.threads[0] != threading.get_ident()
    assert matches[0].id == "p1"
    assert matches[0].score == pytest.approx(0.75)
    assert matches[0].metadata == {"title": "Cell Biology", "text": "Mitochondria produce ATP."}
