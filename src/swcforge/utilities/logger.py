"""Centralized logging configuration.

Library modules only create loggers; call setup_logging() once from the
embedding application to get output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

LOGGER_NAME = "swcforge"


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Repeated calls only adjust the level.

    Args:
        level: Level name ("DEBUG", "INFO", "WARNING", ...).

    Returns:
        The package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger


def setup_logging_from_config(config: dict[str, Any]) -> logging.Logger:
    """Configure logging from the ``[logging]`` config section."""
    return setup_logging(config.get("logging", {}).get("level", "WARNING"))
