"""Logging configuration for the ``ledger_insights`` package.

Two public helpers:

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package
  logger (``"ledger_insights"``) and, optionally, to uvicorn's loggers so HTTP
  access lines share the same format. Entry points (CLI commands, the
  ``serve`` command) call it once at startup.
- ``get_logger(name)``: return a named logger. Until configuration happens the
  package logger carries a ``NullHandler`` so library use stays silent.

Library modules never attach handlers themselves; they call
``get_logger(__name__)`` and leave output decisions to the host process.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "ledger_insights"
_LEVEL_ENV = "LEDGER_INSIGHTS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
_HANDLER: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Translate ``level`` (int, digit string, or level name) into a logging level.

    ``None`` reads ``LEDGER_INSIGHTS_LOG_LEVEL``; anything unrecognised falls
    back to ``INFO``.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def _attach(name: str, handler: logging.Handler, level: int) -> None:
    logger = logging.getLogger(name)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or name in _UVICORN_LOGGERS:
            logger.removeHandler(h)
    logger.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
    include_uvicorn: bool = False,
) -> None:
    """Configure the package logger once per process.

    A later call with ``include_uvicorn=True`` only routes uvicorn's loggers
    through the handler installed by the first call.
    """

    global _HANDLER
    if _HANDLER is None:
        resolved = resolve_level(level)
        _HANDLER = logging.StreamHandler(stream)
        _HANDLER.setLevel(resolved)
        _HANDLER.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
        _attach(_PKG_LOGGER_NAME, _HANDLER, resolved)
    if include_uvicorn:
        for name in _UVICORN_LOGGERS:
            if _HANDLER not in logging.getLogger(name).handlers:
                _attach(name, _HANDLER, _HANDLER.level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name with a silent default until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _HANDLER is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
