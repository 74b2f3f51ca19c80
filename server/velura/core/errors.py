# velura/core/errors.py
from typing import Optional


class VeluraError(Exception):
    """Base for every error the generation pipeline surfaces to a caller."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MalformedResponseError(VeluraError):
    """No bounded JSON object could be located in the model output."""

    status_code = 422


class UnparsableResponseError(VeluraError):
    """Strict parse and the single repair attempt both failed."""

    status_code = 422


class UpstreamTimeoutError(VeluraError):
    status_code = 408


class UpstreamCallError(VeluraError):
    """The model call failed or returned no content."""

    status_code = 502


class RateLimitExceededError(VeluraError):
    status_code = 429

    def __init__(self, message: str, reset_at: float, limit: int):
        super().__init__(message)
        self.reset_at = reset_at
        self.limit = limit
