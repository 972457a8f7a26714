"""
Generative-text and embedding capabilities used by the quiz pipeline

The pipeline only sees the TextGenerator / Embedder protocols, so tests can
pass fakes and deployments can swap providers.
"""
import logging
from typing import List, Optional, Protocol

import google.generativeai as genai
from openai import AsyncOpenAI

from config import settings

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Prompt in, text out"""

    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None,
                       temperature: float = 0.3) -> str:
        ...


class Embedder(Protocol):
    """Text in, vector out"""

    async def embed(self, text: str) -> List[float]:
        ...


class OpenAIGenerator:
    """Chat-completions backed generator (primary: drafting questions, keyword seeds)"""

    def __init__(self, api_key: str, model: str = "gpt-4o", client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None,
                       temperature: float = 0.3) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()


class OpenAIEmbedder:
    """Embeddings via the OpenAI embeddings endpoint"""

    def __init__(self, api_key: str, model: str = "text-embedding-3-small",
                 client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

    async def embed(self, text: str) -> List[float]:
        response = await self.client.embeddings.create(model=self.model, input=text)
        return list(response.data[0].embedding)


class GeminiGenerator:
    """Gemini backed generator (secondary: validation, focus areas, hints)"""

    def __init__(self, api_key: str, model: str = "gemini-1.5-pro"):
        genai.configure(api_key=api_key)
        self.model_name = model
        self.model = genai.GenerativeModel(model)

    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None,
                       temperature: float = 0.3) -> str:
        full_prompt = f"{system_prompt}\n\n{user_prompt}" if system_prompt else user_prompt
        response = await self.model.generate_content_async(
            full_prompt,
            generation_config={"temperature": temperature},
        )
        return response.text.strip()


# =============================================================================
# Factories (None when the provider key is not configured)
# =============================================================================

def create_openai_generator() -> Optional[OpenAIGenerator]:
    if not settings.is_openai_configured():
        logger.warning("OPENAI_API_KEY not configured; primary generator unavailable")
        return None
    return OpenAIGenerator(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_MODEL)


def create_openai_embedder() -> Optional[OpenAIEmbedder]:
    if not settings.is_openai_configured():
        return None
    return OpenAIEmbedder(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_EMBEDDING_MODEL)


def create_gemini_generator(model: Optional[str] = None) -> Optional[GeminiGenerator]:
    if not settings.is_gemini_configured():
        logger.warning("GEMINI_API_KEY not configured; secondary generator unavailable")
        return None
    return GeminiGenerator(api_key=settings.GEMINI_API_KEY, model=model or settings.GEMINI_VALIDATION_MODEL)
