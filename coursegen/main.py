"""
Command line entry point: generates a course for a topic or a text document and
prints the content tree as JSON.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from coursegen.application.use_cases.generate_course import (
    GenerateCourseCommand,
    GenerateCourseResult,
    GenerateCourseUseCase,
)
from coursegen.core.observability.logger_config import configure_structlog
from coursegen.domain.exceptions import InvalidCourseRequestError
from coursegen.infrastructure.container import CourseContainer

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coursegen", description="Generate a structured course with an LLM.")
    parser.add_argument("topic", nargs="?", help="Course topic")
    parser.add_argument("--document", type=Path, help="Text file used as course source material")
    parser.add_argument("--document-id", help="Identifier stored with the generated course")
    parser.add_argument("--session-id", default="default", help="Cache namespace")
    parser.add_argument("--log-level", help="Overrides LOG_LEVEL")
    return parser


def command_from_args(args: argparse.Namespace) -> GenerateCourseCommand:
    document_text = args.document.read_text(encoding="utf-8") if args.document else None
    return GenerateCourseCommand(
        topic=args.topic,
        document_text=document_text,
        document_id=args.document_id,
        document_name=args.document.name if args.document else None,
        session_id=args.session_id,
    )


def result_payload(result: GenerateCourseResult) -> Dict[str, Any]:
    return {
        "error": result.error,
        "recordId": result.record_id,
        "content": result.content.to_payload() if result.content is not None else None,
    }


async def generate(cmd: GenerateCourseCommand, use_case: GenerateCourseUseCase) -> Dict[str, Any]:
    result = await use_case.execute(cmd)
    return result_payload(result)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_structlog(level=args.log_level)

    try:
        cmd = command_from_args(args)
    except OSError as e:
        logger.error("document_unreadable", path=str(args.document), error=str(e))
        return 2

    use_case = GenerateCourseUseCase(CourseContainer(session_id=args.session_id))
    try:
        payload = asyncio.run(generate(cmd, use_case))
    except InvalidCourseRequestError as e:
        logger.error("course_request_invalid", error=str(e))
        return 2

    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 1 if payload["error"] else 0


if __name__ == "__main__":
    sys.exit(main())
