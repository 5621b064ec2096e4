#!/usr/bin/env python3
"""
Readers for the taxonomy service settings.

Deployments pass settings through .env files that are often edited on
Windows, so every value is stripped of CRLF residue first. A malformed value
never stops the service: it is logged and the default is used.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Read a setting with surrounding whitespace and line endings removed.

    Example:
        >>> # .env file has: DEV_TOKEN=portal-secret\r\n
        >>> read_env("DEV_TOKEN")
        'portal-secret'
    """
    raw_value = os.getenv(key)
    if raw_value is None:
        return default

    cleaned = raw_value.strip()
    if raw_value != cleaned:
        logger.warning(f"Setting {key} had trailing whitespace/line endings, using {cleaned!r}")
    return cleaned


def read_limit(key: str, default: int) -> int:
    """Read a build size limit. Limits are whole numbers of at least 1.

    Example:
        >>> # .env file has: TAXONOMY_MAX_IMPORT_ROWS=5000
        >>> read_limit("TAXONOMY_MAX_IMPORT_ROWS", 20000)
        5000
    """
    raw_value = read_env(key)
    if not raw_value:
        return default

    try:
        limit = int(raw_value)
    except ValueError:
        logger.warning(f"Limit {key}={raw_value!r} is not a whole number, using {default}")
        return default

    if limit < 1:
        logger.warning(f"Limit {key}={limit} must be at least 1, using {default}")
        return default
    return limit


def read_flag(key: str, default: bool) -> bool:
    """Read an on/off switch ("true"/"false", "1"/"0", "yes"/"no", "on"/"off")."""
    raw_value = read_env(key)
    if not raw_value:
        return default

    lowered = raw_value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False

    logger.warning(f"Switch {key}={raw_value!r} is neither on nor off, using {default}")
    return default


def read_origins(key: str, default: list[str]) -> list[str]:
    """Read comma-separated CORS origins.

    Browsers send the Origin header without a trailing slash, so one is
    removed from each configured origin.

    Example:
        >>> # .env file has: CORS_ORIGINS=http://localhost:3000/, https://portal.example
        >>> read_origins("CORS_ORIGINS", [])
        ['http://localhost:3000', 'https://portal.example']
    """
    raw_value = read_env(key)
    if not raw_value:
        return list(default)

    origins = [origin.strip().rstrip("/") for origin in raw_value.split(",")]
    origins = [origin for origin in origins if origin]
    return origins or list(default)


def read_log_level(key: str = "LOG_LEVEL", default: str = "INFO") -> str:
    """Read a logging level name, falling back to ``default`` when unknown."""
    level = (read_env(key) or default).upper()
    if level not in _LOG_LEVELS:
        logger.warning(f"Unknown log level {key}={level!r}, using {default}")
        return default
    return level
