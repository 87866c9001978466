import json
import re
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

PARSE_FAILURE_MESSAGE = "Failed to parse response"

_CODE_FENCE = re.compile(r"^```(?:json|JSON)?\s*(.*?)\s*```$", re.DOTALL)


def parse_failure() -> dict:
    return {"error": PARSE_FAILURE_MESSAGE}


def parse_json_response(raw: Any) -> Any:
    """
    Parses the raw text of an LLM completion into a JSON value.
    Unparseable text yields the parse-failure sentinel, which the normalizers
    treat like any other schema mismatch.
    """
    if isinstance(raw, (dict, list)):
        return raw
    if not isinstance(raw, str):
        return parse_failure()

    text = raw.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        return json.loads(text)
    except ValueError:
        pass

    # Prose around a single JSON object.
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        try:
            return json.loads(text[start : end + 1])
        except ValueError:
            pass

    logger.warning("llm_json_parse_failed", preview=text[:200], length=len(text))
    return parse_failure()
