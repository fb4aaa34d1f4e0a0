"""
🔥 THINK ULTRA! Logging utilities for SheetLens
Centralized logging configuration for every module
"""

import logging
import sys
from typing import Dict, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Level applied to loggers created without an explicit override
_default_level = logging.INFO
# Loggers handed out by get_logger(), with whether their level was pinned
_managed_loggers: Dict[str, bool] = {}


def _to_level(level: Union[str, int, None], fallback: int = logging.INFO) -> int:
    if level is None:
        return fallback
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), fallback)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override; without it the logger follows
            configure_logging()

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Don't add handlers if already configured
    if logger.handlers:
        return logger

    log_level = _to_level(level, _default_level)
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    # Prevent duplicate logs
    logger.propagate = False

    _managed_loggers[name] = level is not None
    return logger


def configure_logging(level: str = "INFO") -> None:
    """
    Configure global logging settings.

    Sets the root logger level and re-levels every logger from get_logger()
    that was not given an explicit level.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    global _default_level

    log_level = _to_level(level)
    _default_level = log_level

    logging.root.setLevel(log_level)

    # Only add handler if no handlers exist (avoid duplicate handlers)
    if not logging.root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.root.addHandler(handler)

    for name, pinned in _managed_loggers.items():
        if not pinned:
            logging.getLogger(name).setLevel(log_level)
