# velura/api/error_handler.py
import logging
import time
from datetime import datetime, timezone
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from velura.core.errors import RateLimitExceededError, VeluraError

logger = logging.getLogger(__name__)


def rate_limit_headers(limit: int, remaining: int, reset_at: float) -> Dict[str, str]:
    reset = datetime.fromtimestamp(reset_at, tz=timezone.utc).isoformat()
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": reset,
    }


def create_error_response(error: Exception) -> JSONResponse:
    if isinstance(error, RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation error", "details": jsonable_encoder(error.errors())},
        )

    if isinstance(error, RateLimitExceededError):
        headers = rate_limit_headers(error.limit, 0, error.reset_at)
        headers["Retry-After"] = str(max(0, int(error.reset_at - time.time() + 0.999)))
        return JSONResponse(
            status_code=error.status_code,
            content={
                "error": "Rate limit exceeded",
                "message": error.message,
                "resetAt": headers["X-RateLimit-Reset"],
            },
            headers=headers,
        )

    if isinstance(error, VeluraError):
        return JSONResponse(status_code=error.status_code, content={"error": error.message})

    logger.exception("unhandled error", exc_info=error)
    return JSONResponse(status_code=500, content={"error": str(error) or "Internal server error"})


def register_exception_handlers(app: FastAPI):
    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        return create_error_response(exc)

    app.add_exception_handler(RequestValidationError, _handle)
    app.add_exception_handler(VeluraError, _handle)
    app.add_exception_handler(Exception, _handle)
