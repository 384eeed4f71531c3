"""
Runtime configuration for Racebook.

Values come from the environment (optionally a .env file at the repo root).

Usage:
    from racebook.config import DATA_DIR, LOG_LEVEL, api_latency

    store = JsonFileStore(DATA_DIR)
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

REPO_ROOT = Path(__file__).parent.parent

# Where JsonFileStore keeps races.json / horses.json
DATA_DIR = Path(os.environ.get("RACEBOOK_DATA_DIR", REPO_ROOT / "data"))

LOG_LEVEL = os.environ.get("RACEBOOK_LOG_LEVEL", "INFO").upper()

# Storage keys (one JSON array per collection)
RACES_KEY = "races"
HORSES_KEY = "horses"

DEFAULT_API_LATENCY = (1.0, 3.0)


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}")


def api_latency() -> tuple[float, float]:
    """
    Simulated provider latency range in seconds.

    Reads RACEBOOK_API_LATENCY_MIN / RACEBOOK_API_LATENCY_MAX.
    Set both to 0 to disable the artificial delay.
    """
    low = _float_env("RACEBOOK_API_LATENCY_MIN", DEFAULT_API_LATENCY[0])
    high = _float_env("RACEBOOK_API_LATENCY_MAX", DEFAULT_API_LATENCY[1])
    if low < 0 or high < low:
        raise ValueError(f"Invalid latency range: {low}..{high}")
    return low, high


def log_level() -> int:
    """Resolve LOG_LEVEL to a logging constant (falls back to INFO)."""
    level = logging.getLevelName(LOG_LEVEL)
    return level if isinstance(level, int) else logging.INFO
