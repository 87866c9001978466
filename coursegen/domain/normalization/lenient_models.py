"""
Permissive counterparts of the canonical course documents.

Each field lists its accepted keys in priority order; the first key present in the
payload wins. Values are coerced instead of rejected so that loosely shaped LLM output
still resolves to the canonical concepts.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

MAIN_TOPIC_ALIASES = (
    "mainTopic",
    "MainTopic",
    "Main Topic",
    "Course Title",
    "course title",
    "courseTitle",
    "title",
    "Title",
)
MAIN_TOPIC_OBJECT_KEYS = ("MainTopic", "Main Topic", "mainTopic")
COURSE_DESCRIPTION_ALIASES = (
    "description",
    "Description",
    "Course Description",
    "course description",
    "courseDescription",
)
SUBTOPIC_LIST_ALIASES = (
    "subTopics",
    "SubTopics",
    "Subtopics",
    "subtopics",
    "topics",
    "Topics",
    "Sub-Topics",
    "sub-topics",
)
CHAPTER_LIST_ALIASES = ("chapters", "Chapters", "sections", "Sections")
TITLE_ALIASES = ("title", "Title", "name", "Name")
DESCRIPTION_ALIASES = ("description", "Description", "desc", "summary")
LESSON_LIST_ALIASES = ("lessons", "Lessons")
LESSON_CONTENT_ALIASES = ("content", "Content", "text", "body")
LESSON_QUIZ_ALIASES = ("quiz", "Quiz", "questions", "Questions", "quizCards")
QUESTION_ALIASES = ("question", "Question")
OPTION_ALIASES = ("options", "Options", "choices")
CORRECT_ANSWER_ALIASES = ("correctAnswer", "CorrectAnswer", "correct")


def pick(mapping: Dict[str, Any], aliases: Iterable[str], default: Any = None) -> Any:
    for alias in aliases:
        if alias in mapping:
            return mapping[alias]
    return default


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def as_title(value: Any) -> str:
    """Lesson entries arrive as plain strings or as objects carrying a title."""
    if isinstance(value, dict):
        return as_text(pick(value, TITLE_ALIASES))
    return as_text(value)


def as_objects(value: Any) -> List[Dict[str, Any]]:
    """Keeps object elements; bare strings become title-only objects."""
    objects = []
    for element in as_list(value):
        if isinstance(element, dict):
            objects.append(element)
        elif isinstance(element, str):
            objects.append({"title": element})
    return objects


class LenientModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# --- Outline ---

class LenientTocChapter(LenientModel):
    title: str = Field("", validation_alias=AliasChoices(*TITLE_ALIASES))
    description: str = Field("", validation_alias=AliasChoices(*DESCRIPTION_ALIASES))
    lessons: List[str] = Field(default_factory=list, validation_alias=AliasChoices(*LESSON_LIST_ALIASES))

    @field_validator("title", "description", mode="before")
    @classmethod
    def _text(cls, value):
        return as_text(value)

    @field_validator("lessons", mode="before")
    @classmethod
    def _lesson_titles(cls, value):
        return [as_title(entry) for entry in as_list(value)]


class LenientTocSubTopic(LenientModel):
    title: str = Field("", validation_alias=AliasChoices(*TITLE_ALIASES))
    description: str = Field("", validation_alias=AliasChoices(*DESCRIPTION_ALIASES))
    chapters: List[LenientTocChapter] = Field(
        default_factory=list, validation_alias=AliasChoices(*CHAPTER_LIST_ALIASES)
    )

    @field_validator("title", "description", mode="before")
    @classmethod
    def _text(cls, value):
        return as_text(value)

    @field_validator("chapters", mode="before")
    @classmethod
    def _chapter_objects(cls, value):
        return as_objects(value)


class LenientToc(LenientModel):
    main_topic: str = Field("", validation_alias=AliasChoices(*MAIN_TOPIC_ALIASES))
    description: str = Field("", validation_alias=AliasChoices(*COURSE_DESCRIPTION_ALIASES))
    sub_topics: List[LenientTocSubTopic] = Field(
        default_factory=list, validation_alias=AliasChoices(*SUBTOPIC_LIST_ALIASES)
    )

    @model_validator(mode="before")
    @classmethod
    def _flatten_main_topic_object(cls, data):
        if not isinstance(data, dict):
            return data
        for key in MAIN_TOPIC_OBJECT_KEYS:
            nested = data.get(key)
            if not isinstance(nested, dict):
                continue
            flattened = {k: v for k, v in data.items() if k != key}
            for target, aliases in (
                ("mainTopic", TITLE_ALIASES),
                ("description", DESCRIPTION_ALIASES),
                ("subTopics", SUBTOPIC_LIST_ALIASES),
            ):
                value = pick(nested, aliases)
                if value is not None:
                    flattened[target] = value
            return flattened
        return data

    @field_validator("main_topic", "description", mode="before")
    @classmethod
    def _text(cls, value):
        return as_text(value)

    @field_validator("sub_topics", mode="before")
    @classmethod
    def _subtopic_objects(cls, value):
        return as_objects(value)


# --- Lessons ---

class LenientQuizItem(LenientModel):
    question: str = Field("", validation_alias=AliasChoices(*QUESTION_ALIASES))
    options: List[str] = Field(default_factory=list, validation_alias=AliasChoices(*OPTION_ALIASES))
    correct_answer: Any = Field(None, validation_alias=AliasChoices(*CORRECT_ANSWER_ALIASES))

    @field_validator("question", mode="before")
    @classmethod
    def _text(cls, value):
        return as_text(value)

    @field_validator("options", mode="before")
    @classmethod
    def _option_texts(cls, value):
        return [as_text(option) for option in as_list(value) if option is not None]


class LenientTitled(LenientModel):
    title: str = Field("", validation_alias=AliasChoices(*TITLE_ALIASES))
    description: str = Field("", validation_alias=AliasChoices(*DESCRIPTION_ALIASES))

    @field_validator("title", "description", mode="before")
    @classmethod
    def _text(cls, value):
        return as_text(value)


class LenientMemoryCard(LenientTitled):
    situation: Optional[str] = None
    response: Optional[str] = None

    @field_validator("situation", "response", mode="before")
    @classmethod
    def _optional_text(cls, value):
        return None if value is None else as_text(value)


class LenientMinimalLesson(LenientModel):
    title: str = Field("", validation_alias=AliasChoices(*TITLE_ALIASES))
    content: str = Field("", validation_alias=AliasChoices(*LESSON_CONTENT_ALIASES))
    quiz: List[Dict[str, Any]] = Field(default_factory=list, validation_alias=AliasChoices(*LESSON_QUIZ_ALIASES))

    @model_validator(mode="before")
    @classmethod
    def _from_lesson_info(cls, data):
        if not isinstance(data, dict) or not isinstance(data.get("lessonInfo"), dict):
            return data
        info = data["lessonInfo"]
        if pick(data, TITLE_ALIASES) is None:
            data = {**data, "title": pick(info, TITLE_ALIASES)}
        if pick(data, LESSON_CONTENT_ALIASES) is None:
            data = {**data, "content": pick(info, DESCRIPTION_ALIASES)}
        return data

    @field_validator("title", "content", mode="before")
    @classmethod
    def _text(cls, value):
        return as_text(value)

    @field_validator("quiz", mode="before")
    @classmethod
    def _quiz_objects(cls, value):
        return [item for item in as_list(value) if isinstance(item, dict)]


class LenientRichLesson(LenientModel):
    lesson_info: LenientTitled = Field(validation_alias=AliasChoices("lessonInfo", "LessonInfo"))
    video_script: Optional[LenientTitled] = Field(None, validation_alias=AliasChoices("videoScript", "VideoScript"))
    memory_cards: Optional[List[LenientMemoryCard]] = Field(
        None, validation_alias=AliasChoices("memoryCards", "MemoryCards")
    )
    quiz_cards: Optional[List[Dict[str, Any]]] = Field(None, validation_alias=AliasChoices("quizCards", "QuizCards"))
    open_ended_question: Optional[LenientTitled] = Field(
        None, validation_alias=AliasChoices("openEndedQuestion", "OpenEndedQuestion")
    )
    open_ended_questions: Optional[List[LenientTitled]] = Field(
        None, validation_alias=AliasChoices("openEndedQuestions", "OpenEndedQuestions")
    )

    @field_validator("video_script", "open_ended_question", mode="before")
    @classmethod
    def _optional_object(cls, value):
        return value if isinstance(value, dict) else None

    @field_validator("memory_cards", "open_ended_questions", mode="before")
    @classmethod
    def _optional_objects(cls, value):
        return None if value is None else as_objects(value)

    @field_validator("quiz_cards", mode="before")
    @classmethod
    def _quiz_objects(cls, value):
        if value is None:
            return None
        return [item for item in as_list(value) if isinstance(item, dict)]
