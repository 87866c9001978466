import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


PROJECT_ROOT = Path(__file__).resolve().parents[2]
ROOT_ENV = PROJECT_ROOT / ".env"
ROOT_ENV_LOCAL = PROJECT_ROOT / ".env.local"


class Settings(BaseSettings):
    """
    coursegen - Global Configuration Registry
    Centralizes all environment variables using Pydantic Settings.
    """

    model_config = SettingsConfigDict(
        env_file=(
            str(ROOT_ENV),
            str(ROOT_ENV_LOCAL),
        ),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Infrastructure
    SUPABASE_URL: Optional[str] = Field(
        None, validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    )
    SUPABASE_SERVICE_KEY: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"
        ),
    )
    SUPABASE_MEMORY_TABLE: str = "memory_store"
    SUPABASE_CONTENT_TABLE: str = "education_content"
    SUPABASE_MATCH_FUNCTION: str = "match_documents"
    SUPABASE_MATCH_THRESHOLD: float = 0.5

    # AI Models & Services
    OPENAI_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = Field(
        None, validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY")
    )
    LLM_PROVIDER: Literal["auto", "openai", "groq", "gemini"] = "auto"
    OPENAI_CHAT_MODEL: str = "gpt-4o"
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"
    LLM_CALL_TIMEOUT_SECONDS: float = 120.0
    LLM_MAX_ATTEMPTS: int = 3

    # Course pipeline
    TOC_TEMPERATURE: float = 0.4
    CONTENT_TEMPERATURE: float = 0.3
    CONTEXT_CHAR_BUDGET: int = 10000
    CONTEXT_TOP_K: int = 5
    CHAPTER_CONTEXT_TOP_K: int = 3
    CONTENT_SUBTOPIC_MAX_PARALLEL: int = 4
    LESSON_SCHEMA_VARIANT: Literal["rich", "minimal"] = "rich"
    CACHE_BACKEND: Literal["memory", "supabase"] = "memory"
    DOCUMENT_CHUNK_SIZE: int = 1000

    # Observability
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("CONTENT_SUBTOPIC_MAX_PARALLEL", "CONTEXT_TOP_K", "CHAPTER_CONTEXT_TOP_K")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            logger.warning("negative_setting_clamped value=%s", value)
            return 0
        return value

    @field_validator("LLM_MAX_ATTEMPTS")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        return max(1, value)


settings = Settings()
