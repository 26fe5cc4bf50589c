"""Configuration management for the Spendy dashboard.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in spendy_dashboard/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("SPENDY_DATA_DIR", _PROJECT_ROOT / "data"))

# Persisted user state
PREFERENCES_PATH = Path(
    os.getenv("SPENDY_PREFERENCES_PATH", DATA_DIR / "alert_preferences.json")
).resolve()
GOALS_PATH = Path(
    os.getenv("SPENDY_GOALS_PATH", DATA_DIR / "savings_goals.json")
).resolve()

# Logging
LOG_LEVEL = os.getenv("SPENDY_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Number of trailing months the dashboard analyses by default
RECENT_MONTHS = int(os.getenv("SPENDY_RECENT_MONTHS", "3"))

CURRENCY_SYMBOL = os.getenv("SPENDY_CURRENCY_SYMBOL", "€")


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, PREFERENCES_PATH.parent, GOALS_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and the Streamlit app.

    Args:
        level: Level name such as ``"DEBUG"``. Defaults to ``SPENDY_LOG_LEVEL``.
    """
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
