from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from langchain_core.messages import BaseMessage

from coursegen.domain.schemas.course_schemas import Chunk, ContentTree


class ContextSearchPort(Protocol):
    async def search(self, query: str, k: int) -> list[Chunk]:
        ...


class ChapterCachePort(Protocol):
    async def get(self, key: str) -> str | None:
        ...

    async def put(self, key: str, value: str) -> None:
        ...


class JsonCompletionPort(Protocol):
    async def complete_json(
        self,
        system_prompt: str,
        history: Sequence[BaseMessage],
        user_prompt: str,
        schema: Mapping[str, Any],
    ) -> str:
        ...


class CourseRepositoryPort(Protocol):
    async def persist(self, content_tree: ContentTree, document_metadata: Mapping[str, Any]) -> str:
        ...
