from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from coursegen.domain.schemas.course_schemas import Chunk
from coursegen.workflows.course_generation.stages.context import ContextRetrievalStage
from coursegen.workflows.course_generation.state import PipelineState


@dataclass
class _FakeSearch:
    results: list[Chunk] = field(default_factory=list)
    calls: list[tuple[str, int]] = field(default_factory=list)

    async def search(self, query: str, k: int) -> list[Chunk]:
        self.calls.append((query, k))
        return list(self.results)


@dataclass
class _FailingSearch:
    calls: int = 0

    async def search(self, query: str, k: int) -> list[Chunk]:
        self.calls += 1
        raise ConnectionError("vector store unreachable")


def test_supplied_chunks_are_kept_without_querying() -> None:
    search = _FakeSearch(results=[Chunk(text="unused")])
    state = PipelineState(topic="Rust", context_chunks=[Chunk(text="from document", metadata={"chunk": 0})])

    result = asyncio.run(ContextRetrievalStage(search, top_k=5)(state))

    assert result is state
    assert search.calls == []


def test_topic_is_searched_with_top_five() -> None:
    search = _FakeSearch(results=[Chunk(text="a"), Chunk(text="b")])
    state = PipelineState(topic="Rust")

    result = asyncio.run(ContextRetrievalStage(search, top_k=5)(state))

    assert search.calls == [("Rust", 5)]
    assert [chunk.text for chunk in result.context_chunks] == ["a", "b"]
    assert state.context_chunks == []


def test_search_failure_degrades_to_empty_context() -> None:
    search = _FailingSearch()
    state = PipelineState(topic="Rust")

    result = asyncio.run(ContextRetrievalStage(search, top_k=5)(state))

    assert search.calls == 1
    assert result.context_chunks == []
    assert result.error is None
