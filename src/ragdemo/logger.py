"""Logger factory shared by the service modules.

Usage:
    from ragdemo.logger import get_logger
    logger = get_logger(__name__)
"""

import logging
import sys

from ragdemo.config import get_settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """Return a named logger with a single stderr handler.

    When ``level`` is omitted it comes from ``LOG_LEVEL``.
    """
    resolved_level = level if level is not None else get_settings().log_level
    logger = logging.getLogger(name)

    # handlers are attached once per logger name
    if not logger.handlers:
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(resolved_level)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)

        logger.propagate = False

    return logger
