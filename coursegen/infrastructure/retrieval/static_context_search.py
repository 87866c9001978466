from __future__ import annotations

from typing import Sequence

from coursegen.domain.schemas.course_schemas import Chunk


class StaticContextSearch:
    """Context search over a fixed chunk list; used when no vector store is configured."""

    def __init__(self, chunks: Sequence[Chunk] = ()):
        self._chunks = list(chunks)

    async def search(self, query: str, k: int) -> list[Chunk]:
        if k <= 0:
            return []
        return self._chunks[:k]
