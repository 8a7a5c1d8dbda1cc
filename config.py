from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

APP_DIR = Path(os.environ.get("BOOKSHELF_HOME", Path.home() / ".bookshelf"))
DEFAULT_DB_PATH = Path(os.environ.get("BOOKSHELF_DB", APP_DIR / "bookshelf.db"))

STORAGE_KEYS = {
    "profile": "prefs",
    "favorites": "favs",
    "history": "history",
}

SEARCH_LIMIT = 20
TOP_TERMS_LIMIT = 3
FALLBACK_GENRES = ["fiction", "fantasy", "romance", "history", "science"]


def _read_history_limit() -> Optional[int]:
    raw = os.environ.get("BOOKSHELF_HISTORY_LIMIT", "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


HISTORY_LIMIT = _read_history_limit()
LOG_LEVEL = os.environ.get("BOOKSHELF_LOG_LEVEL", "INFO").upper()


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler to the root logger once."""
    logger = logging.getLogger()
    logger.setLevel(level or LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    return logger
