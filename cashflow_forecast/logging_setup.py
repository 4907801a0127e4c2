"""Centralized logging configuration for the ``cashflow_forecast`` package.

Entry points (scripts, the host application) call ``configure_logging`` once
at startup.  Library modules only call ``get_logger(__name__)`` and never
attach handlers themselves.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

from . import config

_PKG_LOGGER_NAME = "cashflow_forecast"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
        return logging.INFO
    if config.LOG_LEVEL:
        return _parse_level(config.LOG_LEVEL)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach a single ``StreamHandler`` to the package logger, once.

    ``level`` falls back to ``CASHFLOW_FORECAST_LOG_LEVEL`` and then INFO.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s"))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger, keeping the package silent until configured."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
