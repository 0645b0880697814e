"""Logging configuration helpers for the quiz session engine."""

from __future__ import annotations

import logging
from logging import Logger

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | int = logging.INFO) -> Logger:
    """Configure process-wide logging and return the package logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    # httpx logs every request at INFO; the session only cares about failures.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("quizguard")
