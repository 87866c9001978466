import asyncio
import json
import time
from contextlib import nullcontext
from typing import List, Optional, Set

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from pydantic import ValidationError

from coursegen.core.prompts.course import CoursePrompts
from coursegen.core.settings import settings
from coursegen.domain.chunking import join_chunk_texts
from coursegen.domain.exceptions import describe_error
from coursegen.domain.normalization.json_response import parse_json_response
from coursegen.domain.normalization.lesson_normalizer import (
    generation_error_lesson,
    is_error_lesson,
    normalize_chapter_lessons,
)
from coursegen.domain.normalization.toc_normalizer import try_normalize_toc
from coursegen.domain.ports import ChapterCachePort, ContextSearchPort, JsonCompletionPort
from coursegen.domain.schemas.course_schemas import (
    Chunk,
    ContentChapter,
    ContentSubTopic,
    ContentTree,
    MinimalLessonsDocument,
    RichLessonsDocument,
    TocChapter,
    TocDocument,
    TocSubTopic,
)
from coursegen.infrastructure.ai.langchain_completion import message_text
from coursegen.workflows.course_generation.state import PipelineState

logger = structlog.get_logger(__name__)

TOC_MISSING_MESSAGE = "TOC data missing. Cannot generate educational content without structure."


def chapter_cache_key(subtopic_title: str, chapter_title: str) -> str:
    return f"{subtopic_title}-{chapter_title}"


def assign_chapter_cache_keys(toc: TocDocument) -> List[List[str]]:
    """
    Returns one cache key per outline chapter, indexed like `toc.sub_topics[i].chapters[j]`.
    Repeated subtopic/chapter titles get their position appended so that no two chapters
    share a key.
    """
    seen: Set[str] = set()
    keys: List[List[str]] = []
    for i, subtopic in enumerate(toc.sub_topics):
        row: List[str] = []
        for j, chapter in enumerate(subtopic.chapters):
            key = chapter_cache_key(subtopic.title, chapter.title)
            while key in seen:
                key = f"{key}#{i}.{j}"
            seen.add(key)
            row.append(key)
        keys.append(row)
    return keys


def recover_toc_from_history(history: List[BaseMessage], topic: str) -> Optional[TocDocument]:
    """Re-validates the last assistant message as an outline document."""
    for message in reversed(history):
        if isinstance(message, AIMessage):
            return try_normalize_toc(parse_json_response(message_text(message)), topic)
    return None


class ChapterContentStage:
    """
    Expands every outline chapter into lessons.
    Subtopics run concurrently (bounded by `max_parallel`, 0 means unbounded); chapters
    inside a subtopic run sequentially. Chapter failures become inline error lessons.
    """

    def __init__(
        self,
        completion: JsonCompletionPort,
        search: ContextSearchPort,
        cache: ChapterCachePort,
        variant: str = settings.LESSON_SCHEMA_VARIANT,
        max_parallel: int = settings.CONTENT_SUBTOPIC_MAX_PARALLEL,
        chapter_top_k: int = settings.CHAPTER_CONTEXT_TOP_K,
        char_budget: int = settings.CONTEXT_CHAR_BUDGET,
        timeout_seconds: Optional[float] = settings.LLM_CALL_TIMEOUT_SECONDS,
    ):
        self.completion = completion
        self.search = search
        self.cache = cache
        self.variant = variant
        self.max_parallel = max_parallel
        self.chapter_top_k = chapter_top_k
        self.char_budget = char_budget
        self.timeout_seconds = timeout_seconds

    @property
    def lessons_schema(self) -> dict:
        document = MinimalLessonsDocument if self.variant == "minimal" else RichLessonsDocument
        return document.model_json_schema(by_alias=True)

    # --- cache ---

    async def _read_cache(self, key: str) -> Optional[ContentChapter]:
        try:
            cached = await self.cache.get(key)
        except Exception as e:
            logger.warning("chapter_cache_read_failed", key=key, error=str(e))
            return None
        if not cached:
            return None
        try:
            return ContentChapter.model_validate_json(cached)
        except (ValidationError, ValueError) as e:
            logger.warning("chapter_cache_entry_corrupt", key=key, error=str(e))
            return None

    async def _write_cache(self, key: str, chapter: ContentChapter) -> None:
        try:
            await self.cache.put(key, chapter.to_json())
        except Exception as e:
            logger.warning("chapter_cache_write_failed", key=key, error=str(e))

    # --- generation ---

    async def _chapter_context(self, base: List[Chunk], query: str) -> str:
        try:
            extra = list(await self.search.search(query, self.chapter_top_k) or [])
        except Exception as e:
            logger.warning("chapter_context_search_failed", query=query, error=str(e))
            extra = []
        return join_chunk_texts([*base, *extra], self.char_budget)

    async def _complete(self, system_prompt: str, user_prompt: str) -> str:
        call = self.completion.complete_json(
            system_prompt=system_prompt,
            history=[],
            user_prompt=user_prompt,
            schema=self.lessons_schema,
        )
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    async def _generate_chapter(
        self, state: PipelineState, main_topic: str, subtopic: TocSubTopic, chapter: TocChapter, key: str
    ) -> ContentChapter:
        cached = await self._read_cache(key)
        if cached is not None:
            logger.info("chapter_cache_hit", key=key)
            return cached

        start = time.perf_counter()
        try:
            context = await self._chapter_context(
                state.context_chunks, f"{main_topic} {subtopic.title} {chapter.title}"
            )
            raw_text = await self._complete(
                CoursePrompts.lesson_system(context, self.variant),
                CoursePrompts.lesson_user(main_topic, subtopic.title, chapter.title, chapter.lessons),
            )
            lessons = normalize_chapter_lessons(parse_json_response(raw_text), self.variant)
        except Exception as e:
            logger.warning("chapter_generation_failed", key=key, error=describe_error(e))
            return ContentChapter(
                title=chapter.title,
                description=chapter.description,
                lessons=[generation_error_lesson(describe_error(e), self.variant)],
            )

        content = ContentChapter(title=chapter.title, description=chapter.description, lessons=lessons)
        if any(is_error_lesson(lesson) for lesson in lessons):
            logger.warning("chapter_not_cached_after_fallback", key=key)
        else:
            await self._write_cache(key, content)
        logger.info(
            "chapter_generated",
            key=key,
            lessons=len(lessons),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return content

    async def _generate_subtopic(
        self,
        state: PipelineState,
        main_topic: str,
        subtopic: TocSubTopic,
        keys: List[str],
        semaphore: Optional[asyncio.Semaphore],
    ) -> ContentSubTopic:
        async with semaphore or nullcontext():
            chapters: List[ContentChapter] = []
            for chapter, key in zip(subtopic.chapters, keys):
                chapters.append(await self._generate_chapter(state, main_topic, subtopic, chapter, key))
        return ContentSubTopic(title=subtopic.title, description=subtopic.description, chapters=chapters)

    async def _generate_all(self, state: PipelineState, toc: TocDocument) -> List[ContentSubTopic]:
        semaphore = asyncio.Semaphore(self.max_parallel) if self.max_parallel > 0 else None
        keys = assign_chapter_cache_keys(toc)
        tasks = [
            asyncio.create_task(self._generate_subtopic(state, toc.main_topic, subtopic, subtopic_keys, semaphore))
            for subtopic, subtopic_keys in zip(toc.sub_topics, keys)
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def __call__(self, state: PipelineState) -> PipelineState:
        toc = state.toc
        if toc is None:
            toc = recover_toc_from_history(state.history, state.topic)
            if toc is None:
                logger.error("toc_missing", topic=state.topic)
                return state.model_copy(update={"error": TOC_MISSING_MESSAGE})
            logger.info("toc_recovered_from_history", topic=state.topic, subtopics=len(toc.sub_topics))

        main_topic = state.main_topic or toc.main_topic
        description = state.description or toc.description
        start = time.perf_counter()
        sub_topics = await self._generate_all(state, toc)

        content = ContentTree(main_topic=main_topic, description=description, sub_topics=sub_topics)
        history = [
            *state.history,
            HumanMessage(content=f"Generated content for {len(sub_topics)} subtopics"),
            AIMessage(content=json.dumps({"status": "success", "subtopicsCount": len(sub_topics)})),
        ]
        logger.info(
            "course_content_generated",
            main_topic=main_topic,
            subtopics=len(sub_topics),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return state.model_copy(
            update={
                "toc": toc,
                "main_topic": main_topic,
                "description": description,
                "generated_content": content,
                "history": history,
            }
        )
