"""Logging configuration shared by the CLI and the interactive matcher.

Only entrypoints configure handlers. ``configure_logging`` attaches one
``StreamHandler`` to the ``"reconciliation"`` logger; library modules call
``get_logger("reconciliation.<module>")`` and never add handlers themselves.

The level comes from the explicit argument, then the
``RECONCILIATION_LOG_LEVEL`` environment variable, then ``WARNING``. The
interactive matcher prints its own notifications, so INFO-level chatter is
opt-in rather than the default.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER_NAME = "reconciliation"
LOG_LEVEL_ENV = "RECONCILIATION_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Turn ``level`` (or the env override when ``None``) into a numeric level.

    Unknown names fall back to ``WARNING`` rather than raising, so a typo in
    ``.env`` never prevents the CLI from starting.
    """

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach the package handler once and return the package logger.

    Calling this again only adjusts the level; it never stacks handlers.
    """

    global _handler
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    numeric = resolve_level(level)

    if _handler is None:
        for h in list(logger.handlers):
            if isinstance(h, logging.NullHandler):
                logger.removeHandler(h)
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
        logger.addHandler(_handler)
        logger.propagate = False

    _handler.setLevel(numeric)
    logger.setLevel(numeric)
    return logger


def reset_logging() -> None:
    """Detach the package handler (used by tests that configure logging)."""

    global _handler
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, keeping the package silent until configured."""

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is None and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
