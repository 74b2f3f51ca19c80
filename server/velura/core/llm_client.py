# velura/core/llm_client.py
import asyncio
import json
import logging
import os
import time
from typing import Any, Dict, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from velura.core.errors import UpstreamCallError
from velura.core.prompts import SYSTEM_PROMPT
from velura.utils.config import (
    AI_MAX_TOKENS,
    AI_MODEL,
    AI_RETRY_BACKOFF,
    AI_RETRY_COUNT,
    AI_TEMPERATURE,
    DEBUG,
    LOG_DIR,
)

logger = logging.getLogger(__name__)


# -------------------------
# LLM init
# -------------------------
def get_llm() -> BaseChatModel:
    api_key = os.getenv("GOOGLE_API_KEY_GEMINI")
    if not api_key:
        raise RuntimeError("Please set GOOGLE_API_KEY_GEMINI environment variable for Gemini access.")
    if "GOOGLE_API_KEY" not in os.environ:
        os.environ["GOOGLE_API_KEY"] = api_key
    return ChatGoogleGenerativeAI(
        model=AI_MODEL,
        temperature=AI_TEMPERATURE,
        max_output_tokens=AI_MAX_TOKENS,
    )


def _save_debug_log(prefix: str, payload: Dict[str, Any]):
    os.makedirs(LOG_DIR, exist_ok=True)
    fname = f"{int(time.time())}_{prefix}.json"
    path = os.path.join(LOG_DIR, fname)
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
    except OSError:
        logger.exception("Failed to write debug log")


def _content_text(content: Any) -> str:
    # Gemini may answer with a list of parts instead of a plain string
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


def _upstream_status(exc: Exception) -> Optional[int]:
    """HTTP error status reported by the provider exception, if it carries one."""
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 400 <= value < 600:
            return value
    return None


# -------------------------
# Model calls
# -------------------------
async def call_model(prompt: str, llm: Optional[BaseChatModel] = None, debug: bool = DEBUG) -> str:
    """
    Send one user turn with the fixed system prompt and return the raw text.
    Raises UpstreamCallError when the provider fails or answers with nothing.
    The caller owns the deadline.
    """
    llm = llm or get_llm()
    messages = [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)]

    start_ts = time.time()
    try:
        result = await llm.ainvoke(messages)
    except Exception as e:
        logger.exception("model call failed after %.1fs", time.time() - start_ts)
        raise UpstreamCallError(f"AI model call failed: {e}", status_code=_upstream_status(e)) from e

    text = _content_text(getattr(result, "content", None))
    duration = time.time() - start_ts
    logger.info("model call finished in %.1fs (%d chars)", duration, len(text))
    if debug:
        await asyncio.to_thread(
            _save_debug_log,
            "llm_raw_response",
            {"prompt": prompt, "raw_result": text, "duration_s": duration},
        )

    if not text.strip():
        raise UpstreamCallError("No content in AI model response")
    return text


async def call_model_with_retry(prompt: str,
                                llm: Optional[BaseChatModel] = None,
                                max_retries: int = AI_RETRY_COUNT,
                                backoff: float = AI_RETRY_BACKOFF) -> str:
    """
    call_model with linear backoff on UpstreamCallError.
    Total attempts = 1 initial + max_retries. Cancellation propagates immediately.
    """
    total_attempts = 1 + max_retries
    last_exc: Optional[UpstreamCallError] = None
    for attempt in range(1, total_attempts + 1):
        try:
            return await call_model(prompt, llm=llm)
        except UpstreamCallError as e:
            last_exc = e
            logger.warning("model attempt %d/%d failed: %s", attempt, total_attempts, e)
            if attempt < total_attempts:
                await asyncio.sleep(backoff * attempt)

    raise UpstreamCallError(
        f"AI model call failed after {total_attempts} attempts. Last error: {last_exc.message}",
        status_code=last_exc.status_code,
    )
