# velura/core/json_parser.py
"""
Parse a sanitized model response into a FileMap.

- parse_and_repair(text): strict parse, one bounded repair, strict parse again
- parse_code_files(raw): sanitize -> parse_and_repair -> ensure_essentials
"""
import json
import logging
from typing import Any, Dict

from velura.core.errors import UnparsableResponseError
from velura.core.sanitizer import sanitize
from velura.core.scaffold import RESERVED_STYLESHEET, ensure_essentials
from velura.utils.config import DROP_INDEX_CSS
from velura.utils.file_helpers import normalize_file_map

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = (
    "Failed to parse AI response. The AI may have returned invalid JSON format. Please try again."
)


def _strict_parse(text: str) -> Dict[str, str]:
    """
    json.loads that only accepts an object of string -> string.
    Raises ValueError for anything else.
    """
    parsed: Any = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    for key, value in parsed.items():
        if not isinstance(value, str):
            raise ValueError(f"value for {key!r} is {type(value).__name__}, not a string")
    return parsed


def try_repair_json(json_string: str) -> str:
    """
    Close a value cut off mid-string: terminate the string (unless it already
    ends with a quote) and close the outer object. Text already ending in a
    closing brace or bracket is returned trimmed but otherwise unchanged.
    """
    fixed = json_string.strip()
    if not fixed.endswith("}") and not fixed.endswith("]"):
        if not fixed.endswith('"'):
            fixed += '"'
        fixed += "}"
    return fixed


def parse_and_repair(text: str, drop_css: bool = DROP_INDEX_CSS) -> Dict[str, str]:
    try:
        parsed = _strict_parse(text)
    except (ValueError, RecursionError) as first_error:
        logger.warning("strict parse failed (%s); attempting repair", first_error)
        repaired = try_repair_json(text)
        try:
            parsed = _strict_parse(repaired)
        except (ValueError, RecursionError) as e:
            logger.error("repair failed: %s", e)
            raise UnparsableResponseError(PARSE_FAILURE_MESSAGE) from e
        logger.info("repaired truncated model response (%d -> %d chars)", len(text), len(repaired))

    files = normalize_file_map(parsed)

    # Tailwind comes from the CDN, so the model's stylesheet only fights it
    if drop_css and RESERVED_STYLESHEET in files:
        logger.debug("removing %s", RESERVED_STYLESHEET)
        del files[RESERVED_STYLESHEET]
    return files


def parse_code_files(content: str, drop_css: bool = DROP_INDEX_CSS) -> Dict[str, str]:
    """
    Full recovery: raw model text in, bootable FileMap out.
    Raises MalformedResponseError or UnparsableResponseError.
    """
    sanitized = sanitize(content)
    files = parse_and_repair(sanitized, drop_css=drop_css)
    return ensure_essentials(files)
