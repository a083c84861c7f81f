# src/settee/logs.py
from __future__ import annotations

import logging

from settee.config import LoggingSettings

ROOT_LOGGER = "settee"

_handler: logging.Handler | None = None


def getLogger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """
    Attach a single stream handler to the package logger.

    Calling this again only updates level and format of the existing handler.
    """
    global _handler

    logger = logging.getLogger(ROOT_LOGGER)
    if _handler is None:
        _handler = logging.StreamHandler()
        logger.addHandler(_handler)

    _handler.setFormatter(logging.Formatter(settings.format))
    logger.setLevel(settings.level)
    return logger
