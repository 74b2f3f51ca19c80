# velura/api/generate.py
import logging
import time
from typing import Dict

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse

from velura.api.error_handler import rate_limit_headers
from velura.core.codegen_agent import ModelCall, encode_event, generate_code, stream_generate_code
from velura.core.errors import RateLimitExceededError
from velura.core.llm_client import call_model_with_retry
from velura.core.rate_limiter import RateLimiter, RateLimitResult, get_client_ip
from velura.models import (
    GenerateCodeRequest,
    GenerateCodeResponse,
    SandboxRequest,
    SandboxResponse,
)
from velura.utils.config import AI_TIMEOUT, STATUS_PACING
from velura.utils.file_helpers import sandbox_files

logger = logging.getLogger(__name__)

router = APIRouter()

_limiter = RateLimiter()


# --- dependencies (overridable through app.dependency_overrides) ---
def get_rate_limiter() -> RateLimiter:
    return _limiter


def get_model_call() -> ModelCall:
    return call_model_with_retry


def get_status_pacing() -> float:
    return STATUS_PACING


def get_model_timeout() -> float:
    return AI_TIMEOUT


def admit_request(request: Request,
                  limiter: RateLimiter = Depends(get_rate_limiter)) -> Dict[str, str]:
    """
    Count the request against the caller's window and return the X-RateLimit-* headers.
    Raises RateLimitExceededError once the window is full.
    """
    client = get_client_ip(request)
    result: RateLimitResult = limiter.check(client)
    if not result.allowed:
        logger.info("rate limit exceeded for %s", client)
        raise RateLimitExceededError(
            "Too many requests. Please try again later.",
            reset_at=result.reset_at,
            limit=limiter.limit,
        )
    return rate_limit_headers(limiter.limit, result.remaining, result.reset_at)


@router.post("/", response_model=GenerateCodeResponse)
async def generate(req: GenerateCodeRequest,
                   response: Response,
                   headers: Dict[str, str] = Depends(admit_request),
                   model_call: ModelCall = Depends(get_model_call),
                   timeout: float = Depends(get_model_timeout)):
    files = await generate_code(req.prompt, req.current_files, model_call=model_call, timeout=timeout)
    response.headers.update(headers)
    return GenerateCodeResponse(files=files, timestamp=int(time.time() * 1000))


@router.post("/stream")
async def generate_stream(req: GenerateCodeRequest,
                          headers: Dict[str, str] = Depends(admit_request),
                          model_call: ModelCall = Depends(get_model_call),
                          timeout: float = Depends(get_model_timeout),
                          pacing: float = Depends(get_status_pacing)):
    """
    Streaming generation. Yields newline-delimited JSON status events; the last line is
    always either a `complete` event carrying the files or an `error` event.
    """
    async def event_generator():
        async for event in stream_generate_code(
            req.prompt,
            req.current_files,
            model_call=model_call,
            timeout=timeout,
            pacing=pacing,
        ):
            yield encode_event(event).encode("utf-8")

    stream_headers = {"Cache-Control": "no-cache", **headers}
    return StreamingResponse(event_generator(), media_type="application/x-ndjson", headers=stream_headers)


@router.post("/sandbox", response_model=SandboxResponse)
async def sandbox(req: SandboxRequest):
    """
    Files as the preview sandbox expects them: leading '/' and no build-tool configs.
    """
    return SandboxResponse(files=sandbox_files(req.files))
