"""Logging setup shared by the storage backends."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from app.config import get_settings

LOGGER_ROOT = "app"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class LoggingConfig:
    """Configure the app logger hierarchy once per process."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        level_name = (level or get_settings().log_level).upper()
        logger = logging.getLogger(LOGGER_ROOT)
        logger.setLevel(getattr(logging, level_name, logging.INFO))
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the app namespace (app or app.<name>)."""
    if not name:
        return logging.getLogger(LOGGER_ROOT)
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")
