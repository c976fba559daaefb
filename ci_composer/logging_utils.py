"""Logging configuration helpers for cci."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "cci"


def _close_handlers(logger: logging.Logger) -> None:
    """Detach and close all handlers currently bound to the logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(*, log_file: Path | None, verbose: bool) -> logging.Logger:
    """Configure cci logging for one CLI invocation and return the logger.

    Handlers are rebound on every call. When a log file is given it is
    truncated so each run has an isolated log history; without one, records
    are dropped unless the caller attaches its own handler.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    _close_handlers(logger)

    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    logger.propagate = False
    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return logger
    log_path = log_file.expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the cci logger, or one of its children, with a null handler fallback."""
    root = logging.getLogger(_LOGGER_NAME)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    if name is None:
        return root
    return root.getChild(name)
