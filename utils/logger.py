"""
utils/logger.py
---------------
Centralized logging configuration.
All modules should use `get_logger(__name__)` to obtain a logger instance.

Every logger lives under the ``orm`` namespace so the host application can
tune or silence the data mapper without touching its own root logger.
"""

import logging
import sys

from config import LOG_LEVEL

ROOT_LOGGER_NAME = "orm"

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_initialized = False


def _init_logging() -> None:
    """Attach a stdout handler to the ``orm`` logger once."""
    global _initialized
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.addHandler(handler)
    root.propagate = False
    _initialized = True


def set_level(level: str) -> None:
    """Change the level of every ``orm`` logger at runtime (e.g. 'DEBUG')."""
    _init_logging()
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A configured logging.Logger, child of the ``orm`` logger.
    """
    _init_logging()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
