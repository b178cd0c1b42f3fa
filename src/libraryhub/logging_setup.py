"""Logging configuration for libraryhub.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once at startup.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The configured ``libraryhub`` logger
    """
    logger = logging.getLogger("libraryhub")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Repeated calls (tests, nested CLI invocations) must not stack handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    return logger
