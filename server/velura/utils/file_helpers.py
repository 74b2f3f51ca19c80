import logging
import os
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# build-tool configs the in-browser bundler brings itself
SANDBOX_SKIP_FILES = (
    "postcss.config.js",
    "tailwind.config.ts",
    "tailwind.config.js",
    "vite.config.ts",
    "vite.config.js",
    "tsconfig.json",
    "package.json",
)


# --- Helper: safe path normalize & reject traversal/abs paths ---
def _safe_normalize(p: str) -> Optional[str]:
    if not isinstance(p, str) or p.strip() == "":
        return None
    p = p.strip().replace("\\", "/")
    # a leading slash is how sandboxes address files; treat it as project-relative
    p = p.lstrip("/")
    if not p:
        return None
    clean = os.path.normpath(p).replace("\\", "/")
    if clean == "." or clean == ".." or clean.startswith("../") or "/../" in clean:
        return None
    while clean.startswith("./"):
        clean = clean[2:]
    return clean


def normalize_file_map(files: Dict[str, str]) -> Dict[str, str]:
    """
    Return a copy of files with normalized keys, preserving order.
    Unsafe or empty paths are dropped; a later duplicate replaces the earlier content in place.
    """
    out: Dict[str, str] = {}
    for path, content in files.items():
        sp = _safe_normalize(path)
        if sp is None:
            logger.warning("dropping unsafe file path from model output: %r", path)
            continue
        if sp != path:
            logger.debug("normalized file path %r -> %r", path, sp)
        out[sp] = content
    return out


def sandbox_files(files: Dict[str, str], skip: Iterable[str] = SANDBOX_SKIP_FILES) -> Dict[str, str]:
    """
    Project a FileMap onto what the preview sandbox consumes:
    config files in `skip` are left out and every key gets a leading '/'.
    """
    skipped = set(skip)
    out: Dict[str, str] = {}
    for name, content in files.items():
        if name in skipped:
            continue
        formatted = name if name.startswith("/") else f"/{name}"
        out[formatted] = content
    return out
