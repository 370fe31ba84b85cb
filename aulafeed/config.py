"""
Runtime configuration for AulaFeed.

Values come from the environment (a local .env file is loaded first).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


DB_PATH = Path(os.getenv("AULAFEED_DB_PATH", "data/aula.db"))
CACHE_DIR = Path(os.getenv("AULAFEED_CACHE_DIR", str(Path.home() / ".aulafeed")))
UPLOAD_DIR = Path(os.getenv("AULAFEED_UPLOAD_DIR", "data/uploads"))
LOG_LEVEL = os.getenv("AULAFEED_LOG_LEVEL", "INFO").upper()

# Progress gating
COMPLETION_THRESHOLD = _float_env("AULAFEED_COMPLETION_THRESHOLD", 80.0)
IMAGE_COMPLETION_THRESHOLD = 100.0
SAVE_STEP_PCT = _float_env("AULAFEED_SAVE_STEP", 2.0)
ASSIGNMENT_PROMPT_PCT = 95.0
SINGLE_IMAGE_MIN_SECONDS = 10.0

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
