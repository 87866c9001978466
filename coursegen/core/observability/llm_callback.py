import time
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.messages import BaseMessage
from langchain_core.outputs import LLMResult

logger = structlog.get_logger("llm_trace")


def _elapsed_ms(start: Optional[float]) -> Optional[float]:
    if start is None:
        return None
    return round((time.perf_counter() - start) * 1000, 2)


class LLMTelemetryCallback(BaseCallbackHandler):
    """
    Logs latency and token usage for every chat model call made by the pipeline.
    """

    def __init__(self, capability: str, provider: str):
        self.capability = capability
        self.provider = provider
        self._start_times: Dict[str, float] = {}

    def on_chat_model_start(
        self, serialized: Dict[str, Any], messages: List[List[BaseMessage]], *, run_id: UUID, **kwargs: Any
    ) -> Any:
        self._start_times[str(run_id)] = time.perf_counter()
        logger.debug(
            "llm_call_started",
            capability=self.capability,
            provider=self.provider,
            message_count=sum(len(batch) for batch in messages),
        )

    def on_llm_end(self, response: LLMResult, *, run_id: UUID, **kwargs: Any) -> Any:
        start = self._start_times.pop(str(run_id), None)
        usage = (response.llm_output or {}).get("token_usage") or {}
        logger.info(
            "llm_call_completed",
            capability=self.capability,
            provider=self.provider,
            duration_ms=_elapsed_ms(start),
            total_tokens=usage.get("total_tokens"),
        )

    def on_llm_error(self, error: BaseException, *, run_id: UUID, **kwargs: Any) -> Any:
        start = self._start_times.pop(str(run_id), None)
        logger.warning(
            "llm_call_failed",
            capability=self.capability,
            provider=self.provider,
            duration_ms=_elapsed_ms(start),
            error=str(error),
        )
