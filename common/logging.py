"""Shared logging configuration.

Status updates (which mixes were found, which are generated) go through
:func:`log_status` so that a quiet run silences them without touching
warnings about skipped packages or middlewares.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LEVEL_ENV = "MIX_LOG_LEVEL"


def _level_from(value: object) -> Optional[int]:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        candidate = logging.getLevelName(value.strip().upper())
        if isinstance(candidate, int):
            return candidate
    return None


def _resolve_level(value: int | str | None) -> int:
    for candidate in (value, os.environ.get(LEVEL_ENV)):
        level = _level_from(candidate)
        if level is not None:
            return level
    return logging.INFO


def configure_logging(level: int | str | None = None) -> None:
    resolved = _resolve_level(level)
    root = logging.getLogger()
    if not root.hasHandlers():
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    elif level is not None:
        root.setLevel(resolved)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name or "mix")


def log_status(logger: logging.Logger, quiet: bool, message: str, *args: object) -> None:
    """INFO-level progress message, dropped entirely when ``quiet``."""

    if not quiet:
        logger.info(message, *args)
