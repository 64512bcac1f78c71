"""Utility functions for file I/O and time."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger('fpllive.utils')


def load_json(path: Path | str) -> Any:
    """
    Load a JSON file.

    Args:
        path: Path to JSON file (str or Path object)

    Returns:
        Parsed JSON

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed

    Example:
        overrides = load_json('fpllive.json')
    """
    path = Path(path)

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def epoch_ms(moment: datetime | None = None) -> int:
    """Milliseconds since the epoch, as browsers expect timestamps."""
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)
