from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from coursegen.core.ai_models import AIModelConfig
from coursegen.core.observability.llm_callback import LLMTelemetryCallback
from coursegen.core.settings import settings

_KNOWN_PROVIDERS = ("openai", "groq", "gemini")


def get_llm(
    temperature: Optional[float] = None,
    capability: str = "LESSON",
    json_mode: bool = True,
    prefer_provider: Optional[str] = None,
) -> BaseChatModel:
    """
    Returns the configured chat model for a pipeline capability.
    Prioritizes OpenAI -> Groq -> Gemini unless a provider is preferred.
    """
    if temperature is None:
        temperature = AIModelConfig.default_temperature(capability)

    def _build_openai() -> Optional[BaseChatModel]:
        if not AIModelConfig.is_openai_available():
            return None
        return ChatOpenAI(
            model=AIModelConfig.get_openai_model_for_capability(capability),
            temperature=temperature,
            api_key=AIModelConfig.OPENAI_API_KEY,
            model_kwargs={"response_format": {"type": "json_object"}} if json_mode else {},
            callbacks=[LLMTelemetryCallback(capability=capability, provider="openai")],
        )

    def _build_groq() -> Optional[BaseChatModel]:
        if not AIModelConfig.is_groq_available():
            return None
        return ChatOpenAI(
            model=AIModelConfig.get_groq_model_for_capability(capability),
            temperature=temperature,
            api_key=AIModelConfig.GROQ_API_KEY,
            base_url=AIModelConfig.GROQ_BASE_URL,
            model_kwargs={"response_format": {"type": "json_object"}} if json_mode else {},
            callbacks=[LLMTelemetryCallback(capability=capability, provider="groq")],
        )

    def _build_gemini() -> Optional[BaseChatModel]:
        if not AIModelConfig.is_gemini_available():
            return None
        extra = {"response_mime_type": "application/json"} if json_mode else {}
        return ChatGoogleGenerativeAI(
            model=AIModelConfig.GEMINI_MODEL_NAME,
            temperature=temperature,
            google_api_key=AIModelConfig.GEMINI_API_KEY,
            callbacks=[LLMTelemetryCallback(capability=capability, provider="gemini")],
            **extra,
        )

    builders = {"openai": _build_openai, "groq": _build_groq, "gemini": _build_gemini}

    preference = (prefer_provider or settings.LLM_PROVIDER or "auto").strip().lower()
    if preference in _KNOWN_PROVIDERS:
        provider_order = [preference] + [p for p in _KNOWN_PROVIDERS if p != preference]
    else:
        provider_order = list(_KNOWN_PROVIDERS)

    for provider in provider_order:
        model = builders[provider]()
        if model is not None:
            return model

    raise ValueError("No valid AI Provider found. Set OPENAI_API_KEY, GROQ_API_KEY or GEMINI_API_KEY.")
