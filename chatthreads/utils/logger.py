# chatthreads/utils/logger.py
"""
Logging configuration and utilities.

All ``chatthreads.*`` loggers share one stdout handler installed on the
package logger, so a level change from the configuration applies to every
module at once.
"""

import logging
import sys

PACKAGE_LOGGER = "chatthreads"
DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level_number(level: str) -> int:
    return getattr(logging, str(level).upper(), logging.INFO)


def _logging_defaults():
    # Import here to avoid circular imports during startup
    try:
        from chatthreads.config import LOGGING
        return LOGGING.log_level, LOGGING.log_format
    except ImportError:
        return DEFAULT_LEVEL, DEFAULT_FORMAT


def configure_logging(level: str = None, log_format: str = None) -> logging.Logger:
    """
    Install or update the shared handler on the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_format: Format string for the stdout handler
    """
    default_level, default_format = _logging_defaults()
    level = _level_number(level or default_level)
    formatter = logging.Formatter(log_format or default_format)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    handler = next((h for h in logger.handlers if getattr(h, "_chatthreads", False)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler._chatthreads = True
        logger.addHandler(handler)

    handler.setLevel(level)
    handler.setFormatter(formatter)
    return logger


def setup_logger(name: str, level: str = None, log_format: str = None) -> logging.Logger:
    """
    Return a logger for ``name`` (usually __name__).

    Package modules get a child of the package logger. Anything else, such
    as a script's ``__main__``, gets its own stdout handler.
    """
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        if not package_logger.handlers or level or log_format:
            configure_logging(level, log_format)
        return logging.getLogger(name)

    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    default_level, default_format = _logging_defaults()
    logger.setLevel(_level_number(level or default_level))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(log_format or default_format))
    logger.addHandler(handler)

    return logger
