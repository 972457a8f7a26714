"""
Configuration settings for the LearnNest quiz service
"""
from pydantic_settings import BaseSettings
from pydantic import validator, Field
from typing import Optional
from pathlib import Path
import logging
import os

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    """Application settings loaded from the environment and .env"""

    # Project root directory (auto-detected)
    PROJECT_ROOT: Path = Field(default_factory=lambda: Path(__file__).parent.absolute())

    # OpenAI Configuration (primary generation, keyword seeding, embeddings)
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Gemini Configuration (semantic validation, focus areas, hints)
    GEMINI_API_KEY: Optional[str] = Field(default=None, description="Google Gemini API key")
    GEMINI_VALIDATION_MODEL: str = "gemini-1.5-pro"
    GEMINI_HINT_MODEL: str = "gemini-1.5-flash"

    # App Configuration
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    DEBUG: bool = False

    # Storage Configuration
    VECTORDB_DIR: str = "data/vectordb"
    VECTOR_COLLECTION: str = "learnnest-corpus"
    AUDIT_DB_PATH: str = "data/audit.db"

    # Pipeline Configuration
    CHUNK_SIZE: int = 12000
    MAX_CHUNKS: int = 4
    SUPPLEMENTAL_MAX_CHARS: int = 48000
    PROMPT_MAX_CHARS: int = 15000
    SEED_MAX_CHARS: int = 8000
    RAG_TOP_K: int = 5
    DEFAULT_NUM_QUESTIONS: int = 8

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra environment variables

    @property
    def vectordb_path(self) -> Path:
        """Get absolute path to vector database directory"""
        return self.PROJECT_ROOT / self.VECTORDB_DIR

    @property
    def audit_db_path(self) -> Path:
        """Get absolute path to the audit log database"""
        return self.PROJECT_ROOT / self.AUDIT_DB_PATH

    @validator('CHUNK_SIZE', 'SUPPLEMENTAL_MAX_CHARS', 'PROMPT_MAX_CHARS', 'SEED_MAX_CHARS')
    def validate_positive_size(cls, v):
        if v <= 0:
            raise ValueError("Character limits must be positive")
        return v

    @validator('MAX_CHUNKS')
    def validate_max_chunks(cls, v):
        """Bound the number of chunks processed per run"""
        if v <= 0 or v > 16:
            raise ValueError("MAX_CHUNKS must be between 1 and 16")
        return v

    @validator('RAG_TOP_K')
    def validate_top_k(cls, v):
        if v <= 0 or v > 50:
            raise ValueError("RAG_TOP_K must be between 1 and 50")
        return v

    def ensure_directories_exist(self):
        """Ensure storage directories exist"""
        for directory in (self.vectordb_path, self.audit_db_path.parent):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise RuntimeError(f"Failed to create directory {directory}: {e}")

    def is_openai_configured(self) -> bool:
        """Check if OpenAI API key is configured"""
        return bool(self.OPENAI_API_KEY and self.OPENAI_API_KEY.strip())

    def is_gemini_configured(self) -> bool:
        """Check if Gemini API key is configured"""
        return bool(self.GEMINI_API_KEY and self.GEMINI_API_KEY.strip())

    def __repr__(self):
        return (
            f"Settings(\n"
            f"  PROJECT_ROOT='{self.PROJECT_ROOT}'\n"
            f"  OPENAI_CONFIGURED={self.is_openai_configured()}\n"
            f"  GEMINI_CONFIGURED={self.is_gemini_configured()}\n"
            f"  VECTORDB_DIR='{self.vectordb_path}'\n"
            f"  AUDIT_DB='{self.audit_db_path}'\n"
            f"  DEBUG={self.DEBUG}\n"
            f")"
        )

def create_settings():
    """Create settings instance, falling back to defaults on a broken environment"""
    try:
        return Settings()
    except Exception as e:
        logger.warning(f"Configuration warning: {e}")
        # Drop keys that failed validation so the service can still start
        # with defaults; API keys are kept
        broken = [
            key for key in Settings.__fields__
            if key in os.environ and not key.endswith("_API_KEY")
        ]
        saved = {key: os.environ.pop(key) for key in broken}
        try:
            return Settings()
        finally:
            os.environ.update(saved)

settings = create_settings()
