"""
Shared logger utility for the budz-dispatch project.
Gives demos and scripts one console format; library modules use
``logging.getLogger(__name__)`` and leave handlers to the caller.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: int | str | None = None) -> int:
    """Level from the argument, else BUDZ_LOG_LEVEL, else INFO. Unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("BUDZ_LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str | None = None, level: int | str | None = None) -> logging.Logger:
    """
    Returns a logger with a console handler in the project format.
    If no name is provided, returns the root logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    return logger
