from __future__ import annotations

import asyncio

import structlog

from coursegen.application.use_cases.generate_course import GenerateCourseUseCase
from coursegen.domain.schemas.course_schemas import ContentTree
from coursegen.infrastructure.container import CourseContainer
from coursegen.main import build_parser, command_from_args, generate, main
from coursegen.workflows.course_generation.state import PipelineState


async def _runner(initial, *, container=None) -> PipelineState:
    state = PipelineState.model_validate(initial)
    content = ContentTree(main_topic=state.topic, description="About it", sub_topics=[])
    return state.model_copy(update={"generated_content": content})


def test_document_argument_becomes_command(tmp_path) -> None:
    document = tmp_path / "borrowing.txt"
    document.write_text("References must not outlive their owner.", encoding="utf-8")

    args = build_parser().parse_args(["--document", str(document), "--document-id", "doc-7"])
    cmd = command_from_args(args)

    assert cmd.topic is None
    assert cmd.document_text == "References must not outlive their owner."
    assert cmd.document_name == "borrowing.txt"
    assert cmd.document_id == "doc-7"
    assert cmd.session_id == "default"


def test_generate_returns_content_payload() -> None:
    use_case = GenerateCourseUseCase(CourseContainer(), pipeline_runner=_runner)
    cmd = command_from_args(build_parser().parse_args(["Rust"]))

    payload = asyncio.run(generate(cmd, use_case))

    assert payload["error"] is None
    assert payload["recordId"] is None
    assert payload["content"] == {"mainTopic": "Rust", "description": "About it", "subTopics": []}


def test_main_rejects_empty_request() -> None:
    try:
        assert main([]) == 2
        assert structlog.is_configured()
    finally:
        structlog.reset_defaults()


def test_main_reports_unreadable_document(tmp_path) -> None:
    try:
        assert main(["--document", str(tmp_path / "missing.txt")]) == 2
    finally:
        structlog.reset_defaults()
