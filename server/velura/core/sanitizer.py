# velura/core/sanitizer.py
"""
Isolate the outermost JSON object in a raw model response.

Models are told to answer with bare JSON but routinely wrap it in a markdown
fence, open with a sentence of chit-chat, or trail off with an explanation.
sanitize() peels those layers in a fixed order: fence, then preamble, then
brace bounding. The result is not validated as JSON here.
"""
import logging
import re

from velura.core.errors import MalformedResponseError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json|javascript|js|tsx|ts)?\s*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```\s*$", re.IGNORECASE)

PREAMBLE_PATTERNS = [
    re.compile(r"^Here's the.*?:\s*", re.IGNORECASE),
    re.compile(r"^Here is the.*?:\s*", re.IGNORECASE),
    re.compile(r"^Sure.*?:\s*", re.IGNORECASE),
    re.compile(r"^Certainly.*?:\s*", re.IGNORECASE),
    re.compile(r"^Of course.*?:\s*", re.IGNORECASE),
    re.compile(r"^I've created.*?:\s*", re.IGNORECASE),
    re.compile(r"^I've generated.*?:\s*", re.IGNORECASE),
    re.compile(r"^Below is.*?:\s*", re.IGNORECASE),
]


def strip_fences(text: str) -> str:
    text = _LEADING_FENCE.sub("", text, count=1)
    return _TRAILING_FENCE.sub("", text, count=1)


def strip_preamble(text: str) -> str:
    for pattern in PREAMBLE_PATTERNS:
        stripped, n = pattern.subn("", text, count=1)
        if n:
            logger.debug("stripped conversational preamble (%d chars)", len(text) - len(stripped))
            return stripped
    return text


def sanitize(raw: str) -> str:
    """
    Return the span from the first '{' to the last '}' of raw, after removing
    one markdown fence pair and at most one conversational preamble.
    Raises MalformedResponseError when no such span exists.
    """
    clean = (raw or "").strip()
    clean = strip_fences(clean)
    clean = strip_preamble(clean)

    first = clean.find("{")
    last = clean.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise MalformedResponseError(
            "Failed to parse AI response: no JSON object found in the model output."
        )
    clean = clean[first:last + 1]

    # anything after the final brace
    final_brace = clean.rfind("}")
    clean = clean[:final_brace + 1]

    if not clean.startswith("{"):
        raise MalformedResponseError("Sanitized response does not start with {")
    if not clean.endswith("}"):
        raise MalformedResponseError("Sanitized response does not end with }")
    return clean
