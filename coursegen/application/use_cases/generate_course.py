from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

import structlog

from coursegen.domain.chunking import text_to_chunks
from coursegen.domain.exceptions import InvalidCourseRequestError, describe_error
from coursegen.domain.schemas.course_schemas import ContentTree
from coursegen.infrastructure.container import CourseContainer
from coursegen.workflows.course_generation.graph import run
from coursegen.workflows.course_generation.state import PipelineState

logger = structlog.get_logger(__name__)

DOCUMENT_TOPIC_FALLBACK = "Document analysis"

PipelineRunner = Callable[..., Awaitable[PipelineState]]


@dataclass(frozen=True)
class GenerateCourseCommand:
    topic: str | None = None
    document_text: str | None = None
    document_id: str | None = None
    document_name: str | None = None
    document_url: str | None = None
    session_id: str | None = None
    memory: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_document_reference(self) -> bool:
        return bool(self.document_id or self.document_name or self.document_url)

    def document_metadata(self) -> dict[str, Any]:
        metadata = {
            "documentId": self.document_id,
            "documentName": self.document_name,
            "documentUrl": self.document_url,
            "sessionId": self.session_id,
        }
        return {key: value for key, value in metadata.items() if value is not None}


@dataclass(frozen=True)
class GenerateCourseResult:
    state: PipelineState
    record_id: str | None = None

    @property
    def content(self) -> Optional[ContentTree]:
        return self.state.generated_content

    @property
    def error(self) -> Optional[str]:
        return self.state.error


class GenerateCourseUseCase:
    """Builds the pipeline input from a topic or a document and persists document courses."""

    def __init__(
        self,
        container: CourseContainer,
        pipeline_runner: PipelineRunner = run,
        chunk_size: Optional[int] = None,
    ):
        self._container = container
        self._run = pipeline_runner
        self._chunk_size = chunk_size or container.settings.DOCUMENT_CHUNK_SIZE

    def _topic_for(self, cmd: GenerateCourseCommand) -> str:
        if cmd.topic and cmd.topic.strip():
            return cmd.topic.strip()
        return cmd.document_name or DOCUMENT_TOPIC_FALLBACK

    async def execute(self, cmd: GenerateCourseCommand) -> GenerateCourseResult:
        has_topic = bool(cmd.topic and cmd.topic.strip())
        has_document = bool(cmd.document_text and cmd.document_text.strip())
        if not has_topic and not has_document:
            raise InvalidCourseRequestError("Either a topic or document text is required.")

        chunks = (
            text_to_chunks(cmd.document_text, cmd.document_metadata(), chunk_size=self._chunk_size)
            if has_document
            else []
        )
        topic = self._topic_for(cmd)
        logger.info("course_request_accepted", topic=topic, document_chunks=len(chunks))

        state = await self._run(
            {"topic": topic, "context_chunks": chunks, "memory": dict(cmd.memory)},
            container=self._container,
        )

        record_id = None
        if state.generated_content is not None and cmd.has_document_reference:
            record_id = await self._persist(state.generated_content, cmd.document_metadata())
        return GenerateCourseResult(state=state, record_id=record_id)

    async def _persist(self, content: ContentTree, metadata: dict[str, Any]) -> str | None:
        repository = self._container.course_repository
        if repository is None:
            logger.info("course_persist_skipped", reason="no repository configured")
            return None
        try:
            return await repository.persist(content, metadata)
        except Exception as e:
            logger.error("course_persist_failed_non_fatal", main_topic=content.main_topic, error=describe_error(e))
            return None
