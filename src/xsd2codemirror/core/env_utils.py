#!/usr/bin/env python3
"""
Helpers for reading converter settings from the environment.

Values are cleaned of surrounding whitespace and stray CR/LF characters so a
``.env`` file saved on Windows behaves like one saved on Unix.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off", "")


def getenv_clean(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get an environment variable with whitespace and line endings removed.

    Args:
        key: Environment variable name
        default: Value returned when the variable is not set

    Returns:
        Cleaned value, or ``default`` if the variable is not set

    Example:
        >>> # XSD2CM_LOG_FORMAT=json\\r\\n
        >>> getenv_clean("XSD2CM_LOG_FORMAT", "text")
        'json'
    """
    raw_value = os.getenv(key, default)
    if raw_value is None:
        return None

    cleaned = raw_value.strip()
    if raw_value != cleaned:
        logger.warning(
            f"Environment variable {key} had surrounding whitespace/line endings: "
            f"raw={raw_value!r}, cleaned={cleaned!r}"
        )
    return cleaned


def getenv_bool(key: str, default: bool = False) -> bool:
    """Get an environment variable as a boolean.

    Accepts true/1/yes/on and false/0/no/off (any case). Anything else logs a
    warning and falls back to ``default``.
    """
    raw_value = getenv_clean(key)
    if raw_value is None:
        return default

    lowered = raw_value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False

    logger.warning(
        f"Environment variable {key} has unexpected boolean value: {raw_value!r}. "
        f"Using default: {default}"
    )
    return default


def getenv_int(key: str, default: int) -> int:
    """Get an environment variable as an integer, falling back to ``default``."""
    raw_value = getenv_clean(key)
    if raw_value is None:
        return default

    try:
        return int(raw_value)
    except ValueError:
        logger.warning(
            f"Environment variable {key} is not a valid integer: {raw_value!r}. "
            f"Using default: {default}"
        )
        return default
