# velura/utils/config.py
"""
Environment-driven settings shared by the generation pipeline.
Values are read once at import time; tests pass explicit arguments instead of patching these.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# model call
AI_MODEL = os.environ.get("VELURA_AI_MODEL", "gemini-2.5-flash")
AI_TEMPERATURE = float(os.environ.get("VELURA_AI_TEMPERATURE", 0.7))
AI_MAX_TOKENS = int(os.environ.get("VELURA_AI_MAX_TOKENS", 8192))
AI_TIMEOUT = float(os.environ.get("VELURA_AI_TIMEOUT", 300))  # seconds
AI_RETRY_COUNT = int(os.environ.get("VELURA_AI_RETRY_COUNT", 2))
AI_RETRY_BACKOFF = float(os.environ.get("VELURA_AI_RETRY_BACKOFF", 1.0))

# pipeline
STATUS_PACING = float(os.environ.get("VELURA_STATUS_PACING", 1.0))
DROP_INDEX_CSS = _env_bool("VELURA_DROP_INDEX_CSS", True)

# admission
RATE_LIMIT = int(os.environ.get("VELURA_RATE_LIMIT", 10))
RATE_WINDOW = float(os.environ.get("VELURA_RATE_WINDOW", 60))
RATE_SWEEP_INTERVAL = float(os.environ.get("VELURA_RATE_SWEEP_INTERVAL", 300))

# request bounds
PROMPT_MIN_LENGTH = 10
PROMPT_MAX_LENGTH = 5000

# debug logs
DEBUG = _env_bool("VELURA_DEBUG", False)
LOG_DIR = os.environ.get("AI_BACKEND_LOG_DIR", "./ai_backend_logs")
