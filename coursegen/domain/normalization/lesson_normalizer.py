"""
Chapter lesson normalization.

Lessons are validated strictly first, then resolved through aliases, and finally
bridged to the configured lesson variant (rich card-based or minimal text + quiz).
"""

import json
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from coursegen.domain.normalization.lenient_models import (
    CORRECT_ANSWER_ALIASES,
    LESSON_LIST_ALIASES,
    LenientMinimalLesson,
    LenientQuizItem,
    LenientRichLesson,
    pick,
)
from coursegen.domain.schemas.course_schemas import (
    LessonContent,
    LessonInfo,
    MemoryCard,
    MinimalLesson,
    OpenEndedQuestion,
    QuizItem,
    RichLesson,
    VideoScript,
)

logger = structlog.get_logger(__name__)

RICH_CARD_KEYS = ("memoryCards", "quizCards", "openEndedQuestion", "openEndedQuestions")
RICH_CARD_FIELDS = ("memory_cards", "quiz_cards", "open_ended_question", "open_ended_questions")

NORMALIZATION_ERROR_TITLE = "Error generating content"
GENERATION_ERROR_TITLE = "Error in content generation"
ERROR_LESSON_TITLES = frozenset({NORMALIZATION_ERROR_TITLE, GENERATION_ERROR_TITLE})

FEEDBACK_QUESTION = OpenEndedQuestion(
    title="Was this lesson easy to understand?",
    description=(
        "✅ Yes, everything was clear\n"
        "🤔 Mostly clear, but I had questions\n"
        "😐 Some parts were confusing\n"
        "❌ No, I didn't understand it"
    ),
)

SUMMARY_LENGTH = 100


# --- Quiz items ---

def _answer_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def normalize_quiz_item(raw: Any) -> Optional[QuizItem]:
    """
    Resolves a quiz item through its aliases.
    Items without options are dropped; a missing, non-numeric or out of range answer
    index defaults to 0, which is logged because the answer key may then be wrong.
    """
    if not isinstance(raw, dict):
        return None
    item = LenientQuizItem.model_validate(raw)
    if not item.options:
        logger.warning("quiz_item_dropped_without_options", question=item.question[:80])
        return None

    index = _answer_index(item.correct_answer)
    if index is None or not 0 <= index < len(item.options):
        logger.warning(
            "quiz_correct_answer_defaulted",
            question=item.question[:80],
            raw_value=repr(pick(raw, CORRECT_ANSWER_ALIASES)),
            options=len(item.options),
        )
        index = 0
    return QuizItem(question=item.question, options=item.options, correct_answer=index)


def normalize_quiz_items(raw_items: Any) -> List[QuizItem]:
    if not isinstance(raw_items, list):
        return []
    items = (normalize_quiz_item(raw) for raw in raw_items)
    return [item for item in items if item is not None]


# --- Variant bridges ---

def _summary(content: str) -> str:
    if len(content) <= SUMMARY_LENGTH:
        return content
    return content[:SUMMARY_LENGTH] + "..."


def minimal_to_rich(lesson: MinimalLesson) -> RichLesson:
    return RichLesson(
        lesson_info=LessonInfo(title=lesson.title, description=_summary(lesson.content)),
        memory_cards=[MemoryCard(title="Content Summary", description=lesson.content)],
        quiz_cards=list(lesson.quiz),
        open_ended_question=FEEDBACK_QUESTION,
    )


def rich_to_minimal(lesson: RichLesson) -> MinimalLesson:
    paragraphs = [card.description for card in lesson.memory_cards or [] if card.description]
    content = "\n\n".join(paragraphs) or lesson.lesson_info.description
    return MinimalLesson(title=lesson.lesson_info.title, content=content, quiz=list(lesson.quiz_cards or []))


def to_variant(lesson: LessonContent, variant: str) -> LessonContent:
    if variant == "minimal":
        return rich_to_minimal(lesson) if isinstance(lesson, RichLesson) else lesson
    return minimal_to_rich(lesson) if isinstance(lesson, MinimalLesson) else lesson


# --- Error lessons ---

def build_error_lesson(title: str, description: str, card_title: str, card_description: str, variant: str) -> LessonContent:
    if variant == "minimal":
        return MinimalLesson(title=title, content=f"{description}\n\n{card_description}", quiz=[])
    return RichLesson(
        lesson_info=LessonInfo(title=title, description=description),
        memory_cards=[MemoryCard(title=card_title, description=card_description)],
        quiz_cards=[],
    )


def normalization_error_lesson(variant: str) -> LessonContent:
    return build_error_lesson(
        NORMALIZATION_ERROR_TITLE,
        "There was an error generating the lesson content.",
        "Error",
        "The API response format may have changed or the content generation failed.",
        variant,
    )


def generation_error_lesson(reason: str, variant: str) -> LessonContent:
    return build_error_lesson(
        GENERATION_ERROR_TITLE,
        f"Error: {reason}",
        "Technical Details",
        f"The lesson content could not be generated: {reason}",
        variant,
    )


def lesson_title(lesson: LessonContent) -> str:
    return lesson.lesson_info.title if isinstance(lesson, RichLesson) else lesson.title


def is_error_lesson(lesson: LessonContent) -> bool:
    return lesson_title(lesson) in ERROR_LESSON_TITLES


# --- Lesson resolution ---

def is_rich_shaped(item: Dict[str, Any]) -> bool:
    return isinstance(item.get("lessonInfo"), dict) and any(item.get(key) is not None for key in RICH_CARD_KEYS)


def _with_card_field(lesson: RichLesson) -> RichLesson:
    # A rich lesson must still look rich when it is normalized again.
    if all(getattr(lesson, field) is None for field in RICH_CARD_FIELDS):
        return lesson.model_copy(update={"memory_cards": []})
    return lesson


def _strict(model, item: Dict[str, Any]):
    try:
        return model.model_validate_json(json.dumps(item))
    except (ValidationError, TypeError, ValueError):
        return None


def _rich_from_payload(item: Dict[str, Any]) -> Optional[RichLesson]:
    lesson = _strict(RichLesson, item)
    if lesson is not None:
        return lesson
    try:
        lenient = LenientRichLesson.model_validate(item)
    except ValidationError:
        return None
    return RichLesson(
        lesson_info=LessonInfo(title=lenient.lesson_info.title, description=lenient.lesson_info.description),
        video_script=(
            VideoScript(title=lenient.video_script.title, description=lenient.video_script.description)
            if lenient.video_script is not None
            else None
        ),
        memory_cards=(
            [
                MemoryCard(title=card.title, description=card.description, situation=card.situation, response=card.response)
                for card in lenient.memory_cards
            ]
            if lenient.memory_cards is not None
            else None
        ),
        quiz_cards=normalize_quiz_items(lenient.quiz_cards) if lenient.quiz_cards is not None else None,
        open_ended_question=(
            OpenEndedQuestion(title=lenient.open_ended_question.title, description=lenient.open_ended_question.description or None)
            if lenient.open_ended_question is not None
            else None
        ),
        open_ended_questions=(
            [OpenEndedQuestion(title=q.title, description=q.description or None) for q in lenient.open_ended_questions]
            if lenient.open_ended_questions is not None
            else None
        ),
    )


def _minimal_from_payload(item: Dict[str, Any]) -> MinimalLesson:
    lesson = _strict(MinimalLesson, item)
    if lesson is not None:
        return lesson
    lenient = LenientMinimalLesson.model_validate(item)
    return MinimalLesson(title=lenient.title, content=lenient.content, quiz=normalize_quiz_items(lenient.quiz))


def normalize_lesson(raw: Any, variant: str = "rich") -> Optional[LessonContent]:
    if isinstance(raw, str):
        raw = {"title": raw}
    if not isinstance(raw, dict):
        return None
    if is_rich_shaped(raw):
        rich = _rich_from_payload(raw)
        if rich is not None:
            return to_variant(_with_card_field(rich), variant)
    return to_variant(_minimal_from_payload(raw), variant)


def resolve_lesson_items(raw: Any) -> Optional[List[Any]]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        items = pick(raw, LESSON_LIST_ALIASES)
        if isinstance(items, list):
            return items
    return None


def normalize_chapter_lessons(raw: Any, variant: str = "rich") -> List[LessonContent]:
    """
    Normalizes a chapter's lessons payload. Always returns at least one lesson; when no
    lessons can be resolved the single normalization error lesson is returned.
    """
    try:
        items = resolve_lesson_items(raw) or []
        lessons = [lesson for lesson in (normalize_lesson(item, variant) for item in items) if lesson is not None]
    except Exception as exc:
        logger.warning("lesson_normalization_failed", error=str(exc))
        lessons = []

    if not lessons:
        logger.warning("lesson_normalization_fallback", variant=variant)
        return [normalization_error_lesson(variant)]
    return lessons
