"""Configuration for the ledger and its assistant.

Values come from environment variables with sensible defaults so the app
boots without any setup (the assistant then answers with its fallback
reply until an API key is provided).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Persistence
STORAGE_KEY = "freddy_premium_v17_fixed"
DATA_DIR = Path(os.getenv("FREDDY_DATA_DIR", _PROJECT_ROOT / "data"))
STORAGE_PATH = Path(
    os.getenv("FREDDY_STORAGE_PATH", DATA_DIR / f"{STORAGE_KEY}.json")
).resolve()

# Assistant
MODEL_NAME = os.getenv("FREDDY_MODEL", "gemini-2.5-flash")
ASSISTANT_TIMEOUT = float(os.getenv("FREDDY_ASSISTANT_TIMEOUT", "30"))
HISTORY_WINDOW = 6
RECENT_TRANSACTIONS = 5

# Dashboard
MAX_ALERTS = 5

LOG_LEVEL = os.getenv("FREDDY_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_api_key() -> Optional[str]:
    """Read the API key at call time so it can be set after import."""
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
