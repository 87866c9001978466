from typing import Any, Dict, List, Optional

from langchain_core.messages import AnyMessage, convert_to_messages
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from coursegen.domain.schemas.course_schemas import Chunk, ContentTree, TocDocument


class PipelineState(BaseModel):
    """
    State threaded through the course generation graph.
    Closed record: stages return updated copies and `extra` is the only open-ended slot.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    topic: str
    context_chunks: List[Chunk] = Field(default_factory=list)
    main_topic: Optional[str] = None
    description: Optional[str] = None
    toc: Optional[TocDocument] = None
    generated_content: Optional[ContentTree] = None
    history: List[AnyMessage] = Field(default_factory=list)
    error: Optional[str] = None
    memory: Dict[str, Any] = Field(default_factory=dict)
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("context_chunks", mode="before")
    @classmethod
    def _chunks(cls, value):
        return [] if value is None else value

    @field_validator("history", mode="before")
    @classmethod
    def _messages(cls, value):
        if not value:
            return []
        return convert_to_messages(value)

    @property
    def failed(self) -> bool:
        return bool(self.error)

    def as_update(self) -> Dict[str, Any]:
        """Field-name keyed values for a graph node update, without re-serializing nested models."""
        return {name: getattr(self, name) for name in type(self).model_fields}
