from __future__ import annotations

from coursegen.domain.normalization.lesson_normalizer import (
    GENERATION_ERROR_TITLE,
    NORMALIZATION_ERROR_TITLE,
    generation_error_lesson,
    is_error_lesson,
    lesson_title,
    normalize_chapter_lessons,
    normalize_quiz_item,
)
from coursegen.domain.schemas.course_schemas import MinimalLesson, RichLesson


def _rich_lesson() -> dict:
    return {
        "lessonInfo": {"title": "Borrowing", "description": "How references work"},
        "videoScript": {"title": "Intro", "description": "Narration"},
        "memoryCards": [{"title": "Rule", "description": "One mutable or many shared"}],
        "quizCards": [{"question": "Can you alias &mut?", "options": ["Yes", "No"], "correctAnswer": 1}],
        "openEndedQuestion": {"title": "Where would you use Rc?", "description": "Think of graphs"},
    }


def test_canonical_rich_lesson_is_idempotent() -> None:
    payload = _rich_lesson()

    first = normalize_chapter_lessons({"lessons": [payload]})
    second = normalize_chapter_lessons({"lessons": [first[0].to_payload()]})

    assert first[0].to_payload() == payload
    assert second[0].to_payload() == payload


def test_minimal_lesson_is_bridged_to_rich_shape() -> None:
    content = "Ownership " * 20
    raw = {
        "Lessons": [
            {
                "Title": "Ownership",
                "Content": content,
                "Quiz": [{"Question": "Who owns it?", "choices": ["a", "b", "c"], "CorrectAnswer": 2}],
            }
        ]
    }

    lessons = normalize_chapter_lessons(raw, variant="rich")

    assert len(lessons) == 1
    lesson = lessons[0]
    assert isinstance(lesson, RichLesson)
    assert lesson.lesson_info.title == "Ownership"
    assert lesson.lesson_info.description == content[:100] + "..."
    assert lesson.memory_cards[0].title == "Content Summary"
    assert lesson.memory_cards[0].description == content
    assert lesson.quiz_cards[0].options == ["a", "b", "c"]
    assert lesson.quiz_cards[0].correct_answer == 2
    assert lesson.open_ended_question.title == "Was this lesson easy to understand?"


def test_bridged_lesson_normalizes_to_itself() -> None:
    first = normalize_chapter_lessons({"lessons": [{"title": "T", "content": "Short", "quiz": []}]})
    again = normalize_chapter_lessons({"lessons": [first[0].to_payload()]})

    assert again[0].to_payload() == first[0].to_payload()


def test_null_card_fields_do_not_make_a_lesson_rich() -> None:
    raw = {"lessonInfo": {"title": "Borrowing", "description": "Learn borrowing"}, "memoryCards": None}

    first = normalize_chapter_lessons({"lessons": [raw]})
    again = normalize_chapter_lessons({"lessons": [first[0].to_payload()]})

    lesson = first[0]
    assert lesson.lesson_info.title == "Borrowing"
    assert lesson.lesson_info.description == "Learn borrowing"
    assert lesson.memory_cards[0].description == "Learn borrowing"
    assert again[0].to_payload() == lesson.to_payload()


def test_rich_lesson_without_cards_keeps_a_card_field() -> None:
    raw = {"lessonInfo": {"title": "Borrowing", "description": "Learn borrowing"}, "openEndedQuestion": "Why borrow?"}

    first = normalize_chapter_lessons({"lessons": [raw]})
    again = normalize_chapter_lessons({"lessons": [first[0].to_payload()]})

    assert first[0].lesson_info.description == "Learn borrowing"
    assert first[0].memory_cards == []
    assert again[0].to_payload() == first[0].to_payload()


def test_rich_lesson_is_bridged_down_for_minimal_variant() -> None:
    lessons = normalize_chapter_lessons([_rich_lesson()], variant="minimal")

    lesson = lessons[0]
    assert isinstance(lesson, MinimalLesson)
    assert lesson.title == "Borrowing"
    assert lesson.content == "One mutable or many shared"
    assert lesson.quiz[0].correct_answer == 1


def test_quiz_indices_stay_within_options() -> None:
    raw_items = [
        {"question": "q1", "options": ["a", "b", "c"], "correctAnswer": "2"},
        {"question": "q2", "options": ["a", "b"], "correctAnswer": True},
        {"question": "q3", "options": ["a", "b"], "correct": 1.0},
        {"question": "q4", "options": ["a", "b"], "correctAnswer": -1},
        {"question": "q5", "options": ["a", "b"], "correctAnswer": 7},
        {"question": "q6", "options": ["a", "b"]},
        {"question": "q7", "options": ["a", "b"], "correctAnswer": "second"},
    ]

    items = [normalize_quiz_item(raw) for raw in raw_items]

    assert [item.correct_answer for item in items] == [2, 0, 1, 0, 0, 0, 0]
    for item in items:
        assert 0 <= item.correct_answer < len(item.options)


def test_quiz_item_without_options_is_dropped() -> None:
    assert normalize_quiz_item({"question": "q", "options": [], "correctAnswer": 0}) is None
    assert normalize_quiz_item("not an object") is None


def test_out_of_range_index_in_rich_lesson_is_repaired() -> None:
    payload = _rich_lesson()
    payload["quizCards"][0]["correctAnswer"] = 9

    lesson = normalize_chapter_lessons({"lessons": [payload]})[0]

    assert lesson.quiz_cards[0].correct_answer == 0
    assert lesson.lesson_info.title == "Borrowing"


def test_unresolvable_payload_yields_single_error_lesson() -> None:
    lessons = normalize_chapter_lessons({"error": "Failed to parse response"})

    assert len(lessons) == 1
    assert lesson_title(lessons[0]) == NORMALIZATION_ERROR_TITLE
    assert is_error_lesson(lessons[0])
    assert lessons[0].quiz_cards == []


def test_plain_string_lessons_are_kept_as_titles() -> None:
    lessons = normalize_chapter_lessons({"lessons": ["Only a title"]}, variant="minimal")

    assert lessons == [MinimalLesson(title="Only a title", content="", quiz=[])]


def test_generation_error_lesson_carries_reason() -> None:
    rich = generation_error_lesson("rate limited", "rich")
    minimal = generation_error_lesson("rate limited", "minimal")

    assert rich.lesson_info.title == GENERATION_ERROR_TITLE
    assert rich.lesson_info.description == "Error: rate limited"
    assert rich.memory_cards[0].title == "Technical Details"
    assert minimal.title == GENERATION_ERROR_TITLE
    assert "rate limited" in minimal.content
