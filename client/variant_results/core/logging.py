"""
Logging setup for the variant results package.
"""

import logging
import sys
from typing import Optional, Union

from .config import get_config

PACKAGE_LOGGER = "variant_results"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """
    Attach a single stream handler to the package logger.
    Safe to call repeatedly: the handler is installed once and only the level changes.
    """
    global _handler

    logger = logging.getLogger(PACKAGE_LOGGER)
    if level is None:
        level = get_config().log_level
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)

    return logger
