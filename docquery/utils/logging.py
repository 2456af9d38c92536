"""
Logging utilities for docquery.

Every module logs through a child of the ``docquery`` package logger:

    >>> logger = get_logger(__name__)      # docquery.query.planner
    >>> logger.debug(f"Executing Query: {format_query(native_query)}")
"""

import logging
import re
import sys
from typing import Any, Optional, Union

from .regex import flag_letters


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "docquery"

# Loggers handed out so far, by full name
_loggers: dict = {}


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logger(
    name: str = ROOT_LOGGER,
    level: Union[str, int] = "INFO",
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a logger with a stdout handler and an optional file handler.

    Calling it again replaces the handlers, so a session can reconfigure
    the package logger from its settings.

    Args:
        name: Logger name
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or number
        format_string: Custom format string
        log_file: Optional file path for logging

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        format_string or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
    )

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger under the ``docquery`` package logger.

    The package logger is configured on first use. Names outside the
    package are nested under it, so handlers live in one place and
    records are emitted once.
    """
    if ROOT_LOGGER not in _loggers:
        setup_logger(ROOT_LOGGER)

    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def format_query(value: Any) -> str:
    """
    Render a native query for log output.

    Compiled regexes are shown as ``/pattern/flags`` instead of their
    ``re.compile(...)`` repr.
    """
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/{flag_letters(value)}"
    if isinstance(value, dict):
        items = ", ".join(f"{k!r}: {format_query(v)}" for k, v in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_query(v) for v in value) + "]"
    return repr(value)


class LogContext:
    """
    Temporarily change a logger's level.

    Example:
        >>> with LogContext(get_logger(), "DEBUG"):
        ...     list(people.query().filter(age.gt(30)))
    """

    def __init__(self, logger: logging.Logger, level: Union[str, int]):
        self.logger = logger
        self.new_level = _resolve_level(level)
        self.old_level = logger.level

    def __enter__(self) -> logging.Logger:
        self.old_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, *args) -> None:
        self.logger.setLevel(self.old_level)
