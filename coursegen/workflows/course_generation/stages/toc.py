import asyncio
import time
from typing import Optional

import structlog
from langchain_core.messages import AIMessage, HumanMessage

from coursegen.core.prompts.course import CoursePrompts
from coursegen.core.settings import settings
from coursegen.domain.chunking import join_chunk_texts
from coursegen.domain.exceptions import describe_error
from coursegen.domain.normalization.json_response import parse_json_response
from coursegen.domain.normalization.toc_normalizer import normalize_toc
from coursegen.domain.ports import ChapterCachePort, JsonCompletionPort
from coursegen.domain.schemas.course_schemas import TocDocument
from coursegen.workflows.course_generation.state import PipelineState

logger = structlog.get_logger(__name__)

INVALID_TOC_MESSAGE = "Invalid TOC data structure. API response format may have changed."


def toc_cache_key(topic: str) -> str:
    return f"TOC for {topic}"


class TocGenerationStage:
    """
    One outline completion per run. Any failure of the LLM call is fatal and is
    reported through `state.error`.
    """

    def __init__(
        self,
        completion: JsonCompletionPort,
        cache: Optional[ChapterCachePort] = None,
        char_budget: int = settings.CONTEXT_CHAR_BUDGET,
        timeout_seconds: Optional[float] = settings.LLM_CALL_TIMEOUT_SECONDS,
    ):
        self.completion = completion
        self.cache = cache
        self.char_budget = char_budget
        self.timeout_seconds = timeout_seconds

    async def _complete(self, state: PipelineState) -> str:
        context = join_chunk_texts(state.context_chunks, self.char_budget)
        call = self.completion.complete_json(
            system_prompt=CoursePrompts.toc_system(context),
            history=list(state.history),
            user_prompt=CoursePrompts.toc_user(state.topic),
            schema=TocDocument.model_json_schema(by_alias=True),
        )
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    async def _remember(self, topic: str, toc_json: str) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.put(toc_cache_key(topic), toc_json)
        except Exception as e:
            logger.warning("toc_cache_write_failed", topic=topic, error=str(e))

    async def __call__(self, state: PipelineState) -> PipelineState:
        start = time.perf_counter()
        try:
            raw_text = await self._complete(state)
        except Exception as e:
            logger.error("toc_generation_failed", topic=state.topic, error=describe_error(e))
            return state.model_copy(update={"error": f"Failed to generate TOC: {describe_error(e)}"})

        toc = normalize_toc(parse_json_response(raw_text), state.topic)
        if not toc.main_topic or not toc.sub_topics:
            logger.error("toc_invalid_after_normalization", topic=state.topic)
            return state.model_copy(update={"error": INVALID_TOC_MESSAGE})

        toc_json = toc.to_json()
        await self._remember(state.topic, toc_json)

        history = [
            *state.history,
            HumanMessage(content=f"Generate TOC for {state.topic}"),
            AIMessage(content=toc_json),
        ]
        logger.info(
            "toc_generated",
            topic=state.topic,
            main_topic=toc.main_topic,
            subtopics=len(toc.sub_topics),
            chapters=sum(len(subtopic.chapters) for subtopic in toc.sub_topics),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return state.model_copy(
            update={
                "main_topic": toc.main_topic,
                "description": toc.description,
                "toc": toc,
                "history": history,
            }
        )
