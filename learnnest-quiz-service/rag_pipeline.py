"""
Retrieval-augmented context for quiz generation
Features: keyword seeding, embedding, ChromaDB-backed corpus search, source attribution
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import chromadb
from chromadb.config import Settings as ChromaSettings

from config import settings
from exceptions import RetrievalError
from llm_clients import Embedder, TextGenerator
from models import RetrievalResult, RetrievedSource, VectorMatch

logger = logging.getLogger(__name__)

PASSAGE_DELIMITER = "\n\n---\n\n"
UNTITLED_SOURCE = "Untitled Source"

KEYWORD_PROMPT = (
    "Extract 5-8 concise keywords from the following study content for retrieval. "
    "Output as a single comma-separated line.\n\n{text}"
)


class VectorIndex(Protocol):
    """Nearest-neighbour search over a fixed corpus"""

    async def query(self, vector: List[float], top_k: int = 5,
                    include_metadata: bool = True) -> List[VectorMatch]:
        ...


class ChromaVectorIndex:
    """Persistent ChromaDB collection holding the reference corpus"""

    def __init__(self, path: Optional[str] = None, collection_name: Optional[str] = None,
                 client: Optional[Any] = None):
        self.collection_name = collection_name or settings.VECTOR_COLLECTION
        if client is None:
            settings.ensure_directories_exist()
            client = chromadb.PersistentClient(
                path=str(path or settings.vectordb_path),
                settings=ChromaSettings(anonymized_telemetry=False)
            )
        self.client = client
        self.collection = self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine", "description": "LearnNest reference corpus"}
        )
        logger.info(f"Vector index ready: collection '{self.collection_name}'")

    def add_passages(self, passages: List[Dict[str, Any]], embeddings: List[List[float]]) -> List[str]:
        """
        Store corpus passages with their embeddings

        Args:
            passages: dicts with 'text' and optional 'id', 'title', 'url'
            embeddings: one vector per passage

        Returns:
            The ids stored
        """
        if len(passages) != len(embeddings):
            raise ValueError("Each passage needs exactly one embedding")

        ids, documents, metadatas = [], [], []
        for i, passage in enumerate(passages):
            ids.append(passage.get("id") or f"passage_{uuid.uuid4().hex[:8]}_{i}")
            documents.append(passage["text"])
            metadata = {"title": passage.get("title") or UNTITLED_SOURCE,
                        "stored_at": datetime.now().isoformat()}
            if passage.get("url"):
                metadata["url"] = passage["url"]
            metadatas.append(metadata)

        self.collection.add(ids=ids, documents=documents, embeddings=embeddings, metadatas=metadatas)
        logger.info(f"Stored {len(ids)} passages in '{self.collection_name}'")
        return ids

    async def query(self, vector: List[float], top_k: int = 5,
                    include_metadata: bool = True) -> List[VectorMatch]:
        include = ["documents", "distances"]
        if include_metadata:
            include.append("metadatas")

        results = await asyncio.to_thread(
            self.collection.query, query_embeddings=[vector], n_results=top_k, include=include
        )

        ids = results.get("ids", [[]])[0]
        documents = (results.get("documents") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0] if include_metadata else []

        matches = []
        for i, match_id in enumerate(ids):
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            if i < len(documents) and documents[i]:
                metadata.setdefault("text", documents[i])
            # cosine distance -> similarity
            score = 1.0 - distances[i] if i < len(distances) and distances[i] is not None else None
            matches.append(VectorMatch(id=match_id, score=score, metadata=metadata))
        return matches


class ContextRetriever:
    """Derives a keyword seed from source text and fetches supporting passages"""

    def __init__(self, generator: TextGenerator, embedder: Embedder, index: VectorIndex,
                 top_k: Optional[int] = None, seed_max_chars: Optional[int] = None):
        self.generator = generator
        self.embedder = embedder
        self.index = index
        self.top_k = top_k or settings.RAG_TOP_K
        self.seed_max_chars = seed_max_chars or settings.SEED_MAX_CHARS

    async def build_seed_query(self, source_text: str) -> str:
        """Ask the model for 5-8 retrieval keywords"""
        seed = await self.generator.complete(KEYWORD_PROMPT.format(text=source_text), temperature=0.2)
        return (seed or "").strip()

    async def retrieve(self, source_text: str) -> RetrievalResult:
        """
        Fetch context passages and sources for the given text

        Raises:
            RetrievalError: any failure along seed -> embed -> query
        """
        try:
            seed = await self.build_seed_query(source_text)
            logger.info(f"Retrieval seed: {seed[:100]}")
            vector = await self.embedder.embed(seed[:self.seed_max_chars])
            matches = await self.index.query(vector, top_k=self.top_k, include_metadata=True)
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(technical_details=f"{type(e).__name__}: {e}") from e

        passages = [m.metadata.get("text") for m in matches if m.metadata.get("text")]
        sources = [
            RetrievedSource(
                id=str(m.id),
                title=m.metadata.get("title") or UNTITLED_SOURCE,
                url=m.metadata.get("url") or None,
                score=m.score or None,
            )
            for m in matches
        ]
        logger.info(f"Retrieved {len(passages)} passages from {len(sources)} sources")
        return RetrievalResult(context=PASSAGE_DELIMITER.join(passages), sources=sources)
