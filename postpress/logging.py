"""Logging configuration for postpress."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "postpress"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure and return the package logger.

    Diagnostics go to standard error so that build output on standard
    output stays clean. Repeated calls replace the handler rather than
    stacking a new one, and bind it to the current ``sys.stderr``.

    Args:
        level: Logging level (default INFO).

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
