"""
Canonical course documents.

Python attributes are snake_case; the serialized (and LLM facing) names are camelCase.
Document models validate strictly so that only already-canonical payloads pass the
first normalization tier.
"""

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, model_validator
from pydantic.alias_generators import to_camel


class CourseDocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, strict=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class Chunk(BaseModel):
    """Opaque unit of retrieved context."""

    model_config = ConfigDict(frozen=True)

    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


# --- Outline ---

class TocChapter(CourseDocumentModel):
    title: str
    description: str = ""
    lessons: List[str]


class TocSubTopic(CourseDocumentModel):
    title: str
    description: str = ""
    chapters: List[TocChapter]


class TocDocument(CourseDocumentModel):
    main_topic: str
    description: str = ""
    sub_topics: List[TocSubTopic]


# --- Lessons ---

class QuizItem(CourseDocumentModel):
    question: str
    options: List[str]
    correct_answer: int

    @model_validator(mode="after")
    def _answer_within_options(self):
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer} out of range for {len(self.options)} options"
            )
        return self


class MemoryCard(CourseDocumentModel):
    title: str
    description: str
    situation: Optional[str] = None
    response: Optional[str] = None


class LessonInfo(CourseDocumentModel):
    title: str
    description: str


class VideoScript(CourseDocumentModel):
    title: str
    description: str


class OpenEndedQuestion(CourseDocumentModel):
    title: str
    description: Optional[str] = None


class MinimalLesson(CourseDocumentModel):
    title: str
    content: str
    quiz: List[QuizItem] = Field(default_factory=list)


class RichLesson(CourseDocumentModel):
    lesson_info: LessonInfo
    video_script: Optional[VideoScript] = None
    memory_cards: Optional[List[MemoryCard]] = None
    quiz_cards: Optional[List[QuizItem]] = None
    open_ended_question: Optional[OpenEndedQuestion] = None
    open_ended_questions: Optional[List[OpenEndedQuestion]] = None

    @property
    def title(self) -> str:
        return self.lesson_info.title


def lesson_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "rich" if ("lessonInfo" in value or "lesson_info" in value) else "minimal"
    return "rich" if isinstance(value, RichLesson) else "minimal"


LessonContent = Annotated[
    Union[
        Annotated[RichLesson, Tag("rich")],
        Annotated[MinimalLesson, Tag("minimal")],
    ],
    Discriminator(lesson_kind),
]


class RichLessonsDocument(CourseDocumentModel):
    """Response shape requested from the LLM for rich lessons."""

    lessons: List[RichLesson]


class MinimalLessonsDocument(CourseDocumentModel):
    """Response shape requested from the LLM for minimal lessons."""

    lessons: List[MinimalLesson]


# --- Generated content ---

class ContentChapter(CourseDocumentModel):
    title: str
    description: str = ""
    lessons: List[LessonContent]


class ContentSubTopic(CourseDocumentModel):
    title: str
    description: str = ""
    chapters: List[ContentChapter]


class ContentTree(CourseDocumentModel):
    main_topic: str
    description: str = ""
    sub_topics: List[ContentSubTopic]
