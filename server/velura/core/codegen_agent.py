# velura/core/codegen_agent.py
"""
Code Generation Agent
- Exposes:
    async def generate_code(prompt, current_files) -> Dict[str, str]
    async def stream_generate_code(prompt, current_files) -> AsyncGenerator[StatusEvent, None]
- One request is one sequential flow:
    compose prompt -> model call (deadline-bounded) -> sanitize -> parse/repair -> scaffold
- The streaming variant reports each stage as a StatusEvent and always ends with
  exactly one `complete` or one `error` event.
"""
import asyncio
import logging
import time
from typing import AsyncGenerator, Awaitable, Callable, Dict, List, Optional

from velura.core.errors import UpstreamTimeoutError, VeluraError
from velura.core.json_parser import parse_code_files
from velura.core.llm_client import call_model_with_retry
from velura.core.prompts import build_contextual_prompt
from velura.models import CompletionSummary, EventType, ProgressStep, StatusEvent
from velura.utils.config import AI_TIMEOUT, DROP_INDEX_CSS, STATUS_PACING

logger = logging.getLogger(__name__)

ModelCall = Callable[[str], Awaitable[str]]

# seconds to linger after each informational step, scaled by `pacing`
STEP_DELAYS = {
    ProgressStep.ANALYZING: 0.4,
    ProgressStep.PREPARING: 0.3,
    ProgressStep.CONNECTING: 0.2,
    ProgressStep.EXTRACTING: 0.25,
    ProgressStep.FILES_DETECTED: 0.3,
    ProgressStep.VALIDATING: 0.2,
    ProgressStep.OPTIMIZING: 0.15,
}

FILES_PREVIEW_COUNT = 3


# ----------------------------
# Event helpers
# ----------------------------
def _status(step: ProgressStep, message: str, emoji: str) -> StatusEvent:
    return StatusEvent(type=EventType.STATUS, step=step, message=message, emoji=emoji)


def _files_detected(file_names: List[str]) -> StatusEvent:
    count = len(file_names)
    preview = ", ".join(file_names[:FILES_PREVIEW_COUNT])
    if count > FILES_PREVIEW_COUNT:
        preview += "..."
    return StatusEvent(
        type=EventType.FILES_DETECTED,
        step=ProgressStep.FILES_DETECTED,
        message=f"{count} files detected: {preview}",
        emoji="📄",
        files=file_names,
    )


def _complete(files: Dict[str, str], is_update: bool) -> StatusEvent:
    names = list(files)
    return StatusEvent(
        type=EventType.COMPLETE,
        step=ProgressStep.COMPLETE,
        files=files,
        timestamp=int(time.time() * 1000),
        summary=CompletionSummary(totalFiles=len(names), fileNames=names, isUpdate=is_update),
    )


def _error(message: str, code: int) -> StatusEvent:
    return StatusEvent(
        type=EventType.ERROR,
        step=ProgressStep.ERROR,
        message=message,
        error=message,
        emoji="❌",
        code=code,
    )


async def _pause(step: ProgressStep, pacing: float):
    delay = STEP_DELAYS.get(step, 0) * pacing
    if delay > 0:
        await asyncio.sleep(delay)


# ----------------------------
# Model call with a hard deadline
# ----------------------------
async def call_with_deadline(model_call: ModelCall, prompt: str, timeout: float = AI_TIMEOUT) -> str:
    """
    Run model_call(prompt) as a task bounded by timeout seconds.
    The task is cancelled on timeout and whenever the caller is cancelled;
    cancelling an already finished task is a no-op, so release happens once.
    """
    task = asyncio.ensure_future(model_call(prompt))
    try:
        return await asyncio.wait_for(task, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error("model call exceeded %.0fs deadline", timeout)
        raise UpstreamTimeoutError(f"AI model timeout after {timeout:g} seconds") from e
    finally:
        if not task.done():
            task.cancel()


# ----------------------------
# Main: streaming generator
# ----------------------------
async def stream_generate_code(prompt: str,
                               current_files: Optional[Dict[str, str]] = None,
                               model_call: Optional[ModelCall] = None,
                               timeout: float = AI_TIMEOUT,
                               pacing: float = STATUS_PACING,
                               drop_css: bool = DROP_INDEX_CSS) -> AsyncGenerator[StatusEvent, None]:
    model_call = model_call or call_model_with_retry
    is_update = bool(current_files)

    try:
        yield _status(ProgressStep.STARTED, "Generation started", "🚀")

        yield _status(ProgressStep.ANALYZING, "Analyzing your request...", "🔍")
        await _pause(ProgressStep.ANALYZING, pacing)

        preparing = "Loading existing files..." if is_update else "Starting project from scratch..."
        yield _status(ProgressStep.PREPARING, preparing, "📂")
        await _pause(ProgressStep.PREPARING, pacing)
        user_message = build_contextual_prompt(prompt, current_files)

        yield _status(ProgressStep.CONNECTING, "Connecting to the AI model...", "⚡")
        await _pause(ProgressStep.CONNECTING, pacing)

        yield _status(ProgressStep.MODEL_CALL_IN_FLIGHT, "Writing the code...", "✍️")
        content = await call_with_deadline(model_call, user_message, timeout=timeout)

        yield _status(ProgressStep.EXTRACTING, "Extracting files from the response...", "📦")
        await _pause(ProgressStep.EXTRACTING, pacing)
        files = parse_code_files(content, drop_css=drop_css)

        yield _files_detected(list(files))
        await _pause(ProgressStep.FILES_DETECTED, pacing)

        yield _status(ProgressStep.VALIDATING, "Validating React components...", "✅")
        await _pause(ProgressStep.VALIDATING, pacing)

        yield _status(ProgressStep.OPTIMIZING, "Optimizing code...", "⚙️")
        await _pause(ProgressStep.OPTIMIZING, pacing)

        logger.info("generation complete: %d files (update=%s)", len(files), is_update)
        yield _complete(files, is_update)
    except VeluraError as e:
        logger.warning("generation failed: %s", e.message)
        yield _error(e.message, e.status_code)
    except Exception as e:
        logger.exception("unexpected error during generation")
        yield _error(str(e) or "Unknown error", 500)


# ----------------------------
# Main: non-streaming generation
# ----------------------------
async def generate_code(prompt: str,
                        current_files: Optional[Dict[str, str]] = None,
                        model_call: Optional[ModelCall] = None,
                        timeout: float = AI_TIMEOUT,
                        drop_css: bool = DROP_INDEX_CSS) -> Dict[str, str]:
    """
    Same pipeline without progress reporting. Taxonomy errors propagate to the caller.
    """
    model_call = model_call or call_model_with_retry
    user_message = build_contextual_prompt(prompt, current_files)
    content = await call_with_deadline(model_call, user_message, timeout=timeout)
    return parse_code_files(content, drop_css=drop_css)


def encode_event(event: StatusEvent) -> str:
    return event.to_line()
