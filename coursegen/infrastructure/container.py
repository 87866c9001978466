"""
Course Container - coursegen Infrastructure Layer

Centralizes adapter instantiation so pipeline stages receive their collaborators
explicitly. Every dependency can be injected; missing ones are built lazily from settings.
"""

from typing import Optional

import structlog
from langchain_openai import OpenAIEmbeddings

from coursegen.core.ai_models import AIModelConfig
from coursegen.core.settings import Settings, settings as default_settings
from coursegen.domain.ports import ChapterCachePort, ContextSearchPort, CourseRepositoryPort, JsonCompletionPort
from coursegen.infrastructure.ai.langchain_completion import LangChainJsonCompletion
from coursegen.infrastructure.caching.in_memory_chapter_cache import InMemoryChapterCache
from coursegen.infrastructure.retrieval.static_context_search import StaticContextSearch
from coursegen.infrastructure.supabase.repositories.supabase_chapter_cache import SupabaseChapterCache
from coursegen.infrastructure.supabase.repositories.supabase_context_search import SupabaseContextSearch
from coursegen.infrastructure.supabase.repositories.supabase_course_repository import SupabaseCourseRepository

logger = structlog.get_logger(__name__)


class CourseContainer:
    """
    IoC Container for the course generation pipeline.
    """

    def __init__(
        self,
        *,
        context_search: Optional[ContextSearchPort] = None,
        chapter_cache: Optional[ChapterCachePort] = None,
        outline_completion: Optional[JsonCompletionPort] = None,
        lesson_completion: Optional[JsonCompletionPort] = None,
        course_repository: Optional[CourseRepositoryPort] = None,
        session_id: str = "default",
        config: Optional[Settings] = None,
    ):
        self.settings = config or default_settings
        self.session_id = session_id
        self._context_search = context_search
        self._chapter_cache = chapter_cache
        self._outline_completion = outline_completion
        self._lesson_completion = lesson_completion
        self._course_repository = course_repository

    def _supabase_configured(self) -> bool:
        return bool(self.settings.SUPABASE_URL and self.settings.SUPABASE_SERVICE_KEY)

    @property
    def context_search(self) -> ContextSearchPort:
        if self._context_search is None:
            if self._supabase_configured() and self.settings.OPENAI_API_KEY:
                embeddings = OpenAIEmbeddings(
                    model=AIModelConfig.OPENAI_EMBEDDING_MODEL,
                    dimensions=AIModelConfig.OPENAI_EMBEDDING_DIMENSIONS,
                    api_key=self.settings.OPENAI_API_KEY,
                )
                self._context_search = SupabaseContextSearch(embeddings)
            else:
                logger.info("context_search_disabled", reason="vector store not configured")
                self._context_search = StaticContextSearch()
        return self._context_search

    @property
    def chapter_cache(self) -> ChapterCachePort:
        if self._chapter_cache is None:
            if self.settings.CACHE_BACKEND == "supabase" and self._supabase_configured():
                self._chapter_cache = SupabaseChapterCache(self.session_id)
            else:
                self._chapter_cache = InMemoryChapterCache(self.session_id)
        return self._chapter_cache

    @property
    def outline_completion(self) -> JsonCompletionPort:
        if self._outline_completion is None:
            self._outline_completion = LangChainJsonCompletion(
                capability="OUTLINE", temperature=self.settings.TOC_TEMPERATURE
            )
        return self._outline_completion

    @property
    def lesson_completion(self) -> JsonCompletionPort:
        if self._lesson_completion is None:
            self._lesson_completion = LangChainJsonCompletion(
                capability="LESSON", temperature=self.settings.CONTENT_TEMPERATURE
            )
        return self._lesson_completion

    @property
    def course_repository(self) -> Optional[CourseRepositoryPort]:
        if self._course_repository is None and self._supabase_configured():
            self._course_repository = SupabaseCourseRepository()
        return self._course_repository
