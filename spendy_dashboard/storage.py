"""Lightweight JSON persistence used by the preference and goal adapters."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_json(path: Path, default: Any) -> Any:
    """Read a JSON document, returning a copy of ``default`` when unusable.

    Missing files, unreadable files and malformed JSON all fall back to the
    default so a corrupted state file never blocks the dashboard.
    """
    target = Path(path)
    if not target.exists():
        return copy.deepcopy(default)
    try:
        with target.open('r', encoding='utf-8') as handle:
            return json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Could not load %s, using defaults: %s", target, exc)
        return copy.deepcopy(default)


def save_json(path: Path, payload: Any) -> None:
    """Write ``payload`` as pretty-printed JSON, creating parent directories.

    Raises:
        OSError: If the file cannot be written
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        with target.open('w', encoding='utf-8') as handle:
            json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)
    except OSError as e:
        raise OSError(f"Failed to save state to {target}: {e}") from e
