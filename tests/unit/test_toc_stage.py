from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import AIMessage, HumanMessage

from coursegen.domain.schemas.course_schemas import Chunk
from coursegen.infrastructure.caching.in_memory_chapter_cache import InMemoryChapterCache
from coursegen.workflows.course_generation.stages.toc import TocGenerationStage
from coursegen.workflows.course_generation.state import PipelineState

TOC_RESPONSE = json.dumps(
    {
        "mainTopic": "Rust",
        "description": "Systems programming",
        "subTopics": [
            {
                "title": "Ownership",
                "description": "Memory model",
                "chapters": [{"title": "Borrowing", "description": "", "lessons": ["Shared", "Mutable"]}],
            }
        ],
    }
)


@dataclass
class _FakeCompletion:
    response: Any = TOC_RESPONSE
    delay: float = 0.0
    calls: list[dict] = field(default_factory=list)

    async def complete_json(self, system_prompt, history, user_prompt, schema) -> str:
        self.calls.append(
            {"system_prompt": system_prompt, "history": list(history), "user_prompt": user_prompt, "schema": schema}
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@dataclass
class _BrokenCache:
    async def get(self, key: str) -> str | None:
        raise ConnectionError("cache down")

    async def put(self, key: str, value: str) -> None:
        raise ConnectionError("cache down")


def test_outline_is_generated_normalized_and_remembered() -> None:
    completion = _FakeCompletion()
    cache = InMemoryChapterCache("s1")
    state = PipelineState(topic="Rust")

    result = asyncio.run(TocGenerationStage(completion, cache=cache)(state))

    assert result.error is None
    assert result.main_topic == "Rust"
    assert result.description == "Systems programming"
    assert result.toc.sub_topics[0].chapters[0].lessons == ["Shared", "Mutable"]
    assert json.loads(asyncio.run(cache.get("TOC for Rust")))["mainTopic"] == "Rust"
    assert isinstance(result.history[-2], HumanMessage)
    assert result.history[-2].content == "Generate TOC for Rust"
    assert isinstance(result.history[-1], AIMessage)
    assert json.loads(result.history[-1].content)["subTopics"][0]["title"] == "Ownership"
    assert state.toc is None


def test_prior_history_and_bounded_context_reach_the_llm() -> None:
    completion = _FakeCompletion()
    prior = [HumanMessage(content="earlier question"), AIMessage(content="earlier answer")]
    state = PipelineState(
        topic="Rust",
        context_chunks=[Chunk(text="a" * 40), Chunk(text="b" * 40)],
        history=prior,
    )

    asyncio.run(TocGenerationStage(completion, char_budget=50)(state))

    call = completion.calls[0]
    assert call["history"] == prior
    assert "a" * 40 in call["system_prompt"]
    assert "b" * 8 in call["system_prompt"]
    assert "b" * 9 not in call["system_prompt"]
    assert "Rust" in call["user_prompt"]
    assert "subTopics" in json.dumps(call["schema"])


def test_llm_failure_sets_error_without_raising() -> None:
    completion = _FakeCompletion(response=RuntimeError("boom"))
    state = PipelineState(topic="Rust")

    result = asyncio.run(TocGenerationStage(completion)(state))

    assert result.error == "Failed to generate TOC: boom"
    assert result.toc is None
    assert result.history == []


def test_llm_timeout_is_reported_as_failure() -> None:
    completion = _FakeCompletion(delay=1.0)
    state = PipelineState(topic="Rust")

    result = asyncio.run(TocGenerationStage(completion, timeout_seconds=0.01)(state))

    assert result.error.startswith("Failed to generate TOC:")
    assert result.toc is None


def test_unparseable_response_falls_back_to_stub_outline() -> None:
    completion = _FakeCompletion(response="I cannot produce JSON today")
    state = PipelineState(topic="Chess")

    result = asyncio.run(TocGenerationStage(completion)(state))

    assert result.error is None
    assert result.main_topic == "Chess"
    assert [subtopic.title for subtopic in result.toc.sub_topics] == ["Understanding Chess"]


def test_cache_failure_does_not_fail_the_stage() -> None:
    completion = _FakeCompletion()
    state = PipelineState(topic="Rust")

    result = asyncio.run(TocGenerationStage(completion, cache=_BrokenCache())(state))

    assert result.error is None
    assert result.toc is not None