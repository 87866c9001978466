from __future__ import annotations

from typing import Any, Iterable, Mapping

from coursegen.domain.schemas.course_schemas import Chunk


def text_to_chunks(text: str, metadata: Mapping[str, Any] | None = None, chunk_size: int = 1000) -> list[Chunk]:
    """Split supplied document text into fixed-size chunks tagged with their position."""

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    body = text or ""
    base = dict(metadata or {})
    return [
        Chunk(text=body[start : start + chunk_size], metadata={**base, "chunk": index})
        for index, start in enumerate(range(0, len(body), chunk_size))
    ]


def join_chunk_texts(chunks: Iterable[Chunk], char_budget: int) -> str:
    """Concatenate chunk texts with blank lines, bounded to `char_budget` characters."""

    joined = "\n\n".join(chunk.text for chunk in chunks if chunk.text)
    if char_budget <= 0:
        return joined
    return joined[:char_budget]
