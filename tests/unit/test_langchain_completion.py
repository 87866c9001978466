from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from coursegen.domain.exceptions import CompletionProviderError
from coursegen.infrastructure.ai.langchain_completion import (
    LangChainJsonCompletion,
    is_retryable_provider_error,
    message_text,
)


@dataclass
class _FakeChatModel:
    responses: list = field(default_factory=list)
    received: list = field(default_factory=list)

    async def ainvoke(self, messages):
        self.received.append(messages)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class _StatusError(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def _completion(model: _FakeChatModel, **kwargs) -> LangChainJsonCompletion:
    return LangChainJsonCompletion(capability="OUTLINE", llm_factory=lambda **_: model, **kwargs)


def test_messages_carry_schema_history_and_prompt() -> None:
    model = _FakeChatModel(responses=[AIMessage(content='{"mainTopic": "Rust"}')])
    history = [HumanMessage(content="before")]

    text = asyncio.run(
        _completion(model).complete_json("You design courses.", history, "Outline Rust", {"type": "object"})
    )

    assert text == '{"mainTopic": "Rust"}'
    messages = model.received[0]
    assert isinstance(messages[0], SystemMessage)
    assert '{"type": "object"}' in messages[0].content
    assert messages[1].content == "before"
    assert messages[-1].content == "Outline Rust"


def test_non_retryable_errors_fail_fast() -> None:
    model = _FakeChatModel(responses=[_StatusError(401), AIMessage(content="{}")])

    with pytest.raises(_StatusError):
        asyncio.run(_completion(model, max_attempts=3).complete_json("s", [], "u", {}))

    assert len(model.received) == 1


def test_empty_completion_is_rejected() -> None:
    model = _FakeChatModel(responses=[AIMessage(content="   ")])

    with pytest.raises(CompletionProviderError, match="Empty completion"):
        asyncio.run(_completion(model).complete_json("s", [], "u", {}))


def test_retryable_error_classification() -> None:
    assert is_retryable_provider_error(_StatusError(429))
    assert is_retryable_provider_error(_StatusError(503))
    assert is_retryable_provider_error(RuntimeError("Request timed out"))
    assert not is_retryable_provider_error(_StatusError(401))
    assert not is_retryable_provider_error(ValueError("bad schema"))


def test_message_text_joins_content_parts() -> None:
    message = AIMessage(content=[{"type": "text", "text": '{"a": '}, {"type": "text", "text": "1}"}])

    assert message_text(message) == '{"a": 1}'
