"""Utilities - logging setup."""

from swcforge.utilities.logger import setup_logging, setup_logging_from_config

__all__ = ["setup_logging", "setup_logging_from_config"]
