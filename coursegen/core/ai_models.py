"""
Centralized AI model configurations for the course generation pipeline.
"""

from coursegen.core.settings import settings


class AIModelConfig:
    # OpenAI Configuration
    OPENAI_API_KEY = settings.OPENAI_API_KEY
    OPENAI_MODEL_HEAVY = settings.OPENAI_CHAT_MODEL
    OPENAI_MODEL_LIGHTWEIGHT = "gpt-4o-mini"
    OPENAI_EMBEDDING_MODEL = settings.OPENAI_EMBEDDING_MODEL
    OPENAI_EMBEDDING_DIMENSIONS = 1536

    # Gemini Configuration
    GEMINI_API_KEY = settings.GEMINI_API_KEY
    GEMINI_MODEL_NAME = "gemini-2.5-flash"

    # Groq Configuration
    GROQ_API_KEY = settings.GROQ_API_KEY
    GROQ_BASE_URL = "https://api.groq.com/openai/v1"
    GROQ_MODEL_LIGHTWEIGHT = "openai/gpt-oss-20b"
    GROQ_MODEL_HEAVY = "openai/gpt-oss-120b"

    # Default Temperatures
    DEFAULT_TEMPERATURE_OUTLINE = settings.TOC_TEMPERATURE
    DEFAULT_TEMPERATURE_LESSON = settings.CONTENT_TEMPERATURE

    _HEAVY_CAPABILITIES = {"OUTLINE", "LESSON"}

    @classmethod
    def is_heavy(cls, capability: str) -> bool:
        return (capability or "").upper() in cls._HEAVY_CAPABILITIES

    @classmethod
    def default_temperature(cls, capability: str) -> float:
        if (capability or "").upper() == "OUTLINE":
            return cls.DEFAULT_TEMPERATURE_OUTLINE
        return cls.DEFAULT_TEMPERATURE_LESSON

    @classmethod
    def get_openai_model_for_capability(cls, capability: str) -> str:
        return cls.OPENAI_MODEL_HEAVY if cls.is_heavy(capability) else cls.OPENAI_MODEL_LIGHTWEIGHT

    @classmethod
    def get_groq_model_for_capability(cls, capability: str) -> str:
        return cls.GROQ_MODEL_HEAVY if cls.is_heavy(capability) else cls.GROQ_MODEL_LIGHTWEIGHT

    @classmethod
    def is_openai_available(cls) -> bool:
        return bool(cls.OPENAI_API_KEY)

    @classmethod
    def is_groq_available(cls) -> bool:
        return bool(cls.GROQ_API_KEY)

    @classmethod
    def is_gemini_available(cls) -> bool:
        return bool(cls.GEMINI_API_KEY)
