"""
Outline normalization: strict canonical schema, then aliased lenient schema, then a
deterministic single-subtopic stub. Never raises.
"""

import json
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from coursegen.domain.normalization.lenient_models import LenientToc
from coursegen.domain.schemas.course_schemas import TocChapter, TocDocument, TocSubTopic

logger = structlog.get_logger(__name__)

DEFAULT_COURSE_TITLE = "Untitled course"


def default_description(topic: str) -> str:
    return f"Educational content about {topic}"


def build_stub_subtopic(main_topic: str) -> TocSubTopic:
    return TocSubTopic(
        title=f"Understanding {main_topic}",
        description=f"Learn about {main_topic}",
        chapters=[
            TocChapter(
                title="Introduction",
                description=f"Basic introduction to {main_topic}",
                lessons=[f"What is {main_topic}?"],
            )
        ],
    )


def build_stub_toc(topic: str) -> TocDocument:
    main_topic = topic or DEFAULT_COURSE_TITLE
    return TocDocument(
        main_topic=main_topic,
        description=default_description(main_topic),
        sub_topics=[build_stub_subtopic(main_topic)],
    )


def _strict(raw: Any) -> Optional[TocDocument]:
    try:
        return TocDocument.model_validate_json(json.dumps(raw))
    except (ValidationError, TypeError, ValueError):
        return None


def _lenient(raw: Any) -> Optional[TocDocument]:
    try:
        lenient = LenientToc.model_validate(raw)
    except ValidationError:
        return None
    return TocDocument(
        main_topic=lenient.main_topic,
        description=lenient.description,
        sub_topics=[
            TocSubTopic(
                title=subtopic.title,
                description=subtopic.description,
                chapters=[
                    TocChapter(title=chapter.title, description=chapter.description, lessons=list(chapter.lessons))
                    for chapter in subtopic.chapters
                ],
            )
            for subtopic in lenient.sub_topics
        ],
    )


def _resolve(raw: Any) -> Optional[TocDocument]:
    toc = _strict(raw)
    if toc is not None:
        return toc
    toc = _lenient(raw)
    if toc is not None:
        logger.info("toc_resolved_with_aliases", subtopics=len(toc.sub_topics))
    return toc


def _complete(toc: TocDocument, topic: str) -> TocDocument:
    """Fills defaults and enforces the non-empty outline invariants."""
    main_topic = toc.main_topic or topic or DEFAULT_COURSE_TITLE
    description = toc.description or default_description(topic or main_topic)

    sub_topics = []
    for subtopic in toc.sub_topics:
        chapters = [
            chapter
            if chapter.lessons
            else chapter.model_copy(update={"lessons": [chapter.title or "Overview"]})
            for chapter in subtopic.chapters
        ]
        sub_topics.append(subtopic.model_copy(update={"chapters": chapters}))

    if not sub_topics:
        logger.warning("toc_subtopics_missing_using_stub", main_topic=main_topic)
        sub_topics = [build_stub_subtopic(main_topic)]

    return TocDocument(main_topic=main_topic, description=description, sub_topics=sub_topics)


def try_normalize_toc(raw: Any, topic: str = "") -> Optional[TocDocument]:
    """Strict and aliased tiers only; returns None when no subtopic could be resolved."""
    try:
        toc = _resolve(raw)
        if toc is None or not toc.sub_topics:
            return None
        return _complete(toc, topic)
    except Exception as exc:
        logger.warning("toc_normalization_failed", error=str(exc))
        return None


def normalize_toc(raw: Any, topic: str) -> TocDocument:
    try:
        toc = _resolve(raw)
        if toc is not None:
            return _complete(toc, topic)
    except Exception as exc:
        logger.warning("toc_normalization_failed", error=str(exc))
    logger.warning("toc_stub_generated", topic=topic)
    return build_stub_toc(topic)
