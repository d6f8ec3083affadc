"""Logging configuration for MathGraph."""

import logging
import sys
from pathlib import Path
from typing import List, Optional
from .settings import get_settings

ROOT_LOGGER = "mathgraph"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Configure the ``mathgraph`` logger.

    Console output goes to stderr so that DDL written to stdout stays clean.
    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Logging level name; defaults to the ``log_level`` setting
        log_file: Optional log file; defaults to the ``log_file`` setting
        format_string: Optional custom format string
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper())
    log_file_path = log_file or settings.log_file
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    handlers: List[logging.Handler] = [
        _handler(logging.StreamHandler(sys.stderr), log_level, formatter)
    ]
    if log_file_path:
        handlers.append(
            _handler(logging.FileHandler(log_file_path, encoding="utf-8"), log_level, formatter)
        )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.handlers.clear()
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a ``mathgraph.*`` logger, configuring logging on first use.

    Args:
        name: Logger name (typically __name__)
    """
    if not logging.getLogger(ROOT_LOGGER).handlers:
        setup_logging()

    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
