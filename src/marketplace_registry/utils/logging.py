"""Logging configuration for Marketplace Registry."""

import logging
import sys
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ROOT_LOGGER = "marketplace_registry"


def setup_logging(
    level: LogLevel = "INFO",
    format_string: str | None = None,
    stream: bool = True,
) -> None:
    """
    Set up logging for the Marketplace Registry.

    Args:
        level: Logging level.
        format_string: Custom format string. Uses default if None.
        stream: If True, log to stderr.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers.clear()

    if stream:
        # stdout is reserved for command output
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(handler)

