"""Loguru sink configuration."""

import sys

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} [{level}] {name}: {message}"


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Send log records to stderr at the given level.

    stdout is left to command output. ``verbose`` forces DEBUG.
    """
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level="DEBUG" if verbose else level)
