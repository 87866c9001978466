import json
from typing import Any, Callable, Mapping, Optional, Sequence

import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from coursegen.core.llm import get_llm
from coursegen.core.settings import settings
from coursegen.domain.exceptions import CompletionProviderError

logger = structlog.get_logger(__name__)


def _extract_status_code(exc: BaseException) -> int | None:
    for attr_name in ("status_code", "status", "http_status"):
        value = getattr(exc, attr_name, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    return int(code) if isinstance(code, int) else None


def is_retryable_provider_error(exc: BaseException) -> bool:
    status_code = _extract_status_code(exc)
    if status_code in {429, 500, 502, 503, 504}:
        return True
    message = str(exc).lower()
    retryable_markers = (
        "too many requests",
        "rate limit",
        "timeout",
        "timed out",
        "temporarily unavailable",
        "overloaded",
        "connection reset",
    )
    return any(marker in message for marker in retryable_markers)


def message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content)


class LangChainJsonCompletion:
    """
    JSON completion port backed by a LangChain chat model.
    The target JSON schema is appended to the system prompt; transient provider
    failures (rate limits, 5xx, timeouts) are retried with exponential backoff.
    """

    def __init__(
        self,
        capability: str,
        temperature: Optional[float] = None,
        llm_factory: Callable[..., BaseChatModel] = get_llm,
        max_attempts: Optional[int] = None,
    ):
        self.capability = capability
        self.temperature = temperature
        self._llm_factory = llm_factory
        self._llm: Optional[BaseChatModel] = None
        self.max_attempts = max_attempts or settings.LLM_MAX_ATTEMPTS

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = self._llm_factory(temperature=self.temperature, capability=self.capability, json_mode=True)
        return self._llm

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: Sequence[BaseMessage],
        user_prompt: str,
        schema: Mapping[str, Any],
    ) -> list[BaseMessage]:
        system = f"{system_prompt}\n\nJSON schema of the expected response:\n{json.dumps(schema, ensure_ascii=False)}"
        return [SystemMessage(content=system), *history, HumanMessage(content=user_prompt)]

    async def complete_json(
        self,
        system_prompt: str,
        history: Sequence[BaseMessage],
        user_prompt: str,
        schema: Mapping[str, Any],
    ) -> str:
        messages = self.build_messages(system_prompt, history, user_prompt, schema)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(is_retryable_provider_error),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.warning("llm_completion_retry", capability=self.capability, attempt=attempt_number)
                response = await self.llm.ainvoke(messages)

        text = message_text(response)
        if not text.strip():
            raise CompletionProviderError(f"Empty completion returned for capability {self.capability}")
        return text
