"""
Snippy Config -- environment-driven settings.

All values are resolved lazily so tests can override them via env vars:

    SNIPPY_HOME               data directory (default: ~/.snippy)
    SNIPPY_DB                 explicit database path (default: $SNIPPY_HOME/snippy.db)
    SNIPPY_MAX_EDIT_DISTANCE  spelling correction bound (default: 2)
    SNIPPY_MAX_CONTENT_SIZE   max characters per snippet (default: 1000000)
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger("snippy.config")

MEMORY_DB = ":memory:"

DEFAULT_MAX_EDIT_DISTANCE = 2
DEFAULT_MAX_CONTENT_SIZE = 1_000_000


def snippy_home() -> Path:
    """Resolve SNIPPY_HOME lazily so tests can override via env var."""
    return Path(os.environ.get("SNIPPY_HOME", str(Path.home() / ".snippy")))


def default_db_path() -> Path:
    explicit = os.environ.get("SNIPPY_DB", "").strip()
    if explicit:
        return Path(explicit).expanduser()
    return snippy_home() / "snippy.db"


def _env_int(name: str, default: int, low: int, high: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %d", name, raw, default)
        return default
    return max(low, min(value, high))  # clamp to [low, high]


def max_edit_distance() -> int:
    """Largest Levenshtein distance at which a query term is still corrected."""
    return _env_int("SNIPPY_MAX_EDIT_DISTANCE", DEFAULT_MAX_EDIT_DISTANCE, 0, 10)


def max_content_size() -> int:
    return _env_int("SNIPPY_MAX_CONTENT_SIZE", DEFAULT_MAX_CONTENT_SIZE, 1, 100_000_000)
