"""
envstack logger module

Usage:
    from envstack.logger import get_logger, create_logger

    logger = get_logger()
    logger.debug("Resolved files", count=2)

    logger = create_logger(level=logging.DEBUG, json_format=True)

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    {PREFIX}_LOG_FILE: Optional file path for log output
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format

    Where {PREFIX} is derived from the logger name ("envstack" -> ENVSTACK,
    "envstack.watch" -> ENVSTACK_WATCH).

Loaders and watch sessions that are not handed a logger share one logger per
component from get_component_logger(), built on first use.
"""

import logging
import os
import threading
from typing import Dict, Optional

from .default_logger import DefaultLogger
from .interface import Logger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter


def _get_env_prefix(name: str) -> str:
    """Convert logger name to environment variable prefix.

    Examples:
        "envstack" -> "ENVSTACK"
        "envstack-watch" -> "ENVSTACK_WATCH"
    """
    return name.upper().replace("-", "_").replace(".", "_")


def create_logger(
    name: str = "envstack",
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> Logger:
    """Create a new logger instance.

    Parameters left as None are read from {PREFIX}_LOG_LEVEL,
    {PREFIX}_LOG_FILE and {PREFIX}_LOG_JSON.

    Args:
        name: Logger name
        level: Logging level (defaults to INFO or env var)
        log_file: Optional file path for log output
        json_format: If True, output logs as JSON

    Returns:
        A configured Logger instance
    """
    env_prefix = _get_env_prefix(name)

    if level is None:
        level_str = os.environ.get(f"{env_prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = os.environ.get(f"{env_prefix}_LOG_FILE")

    if json_format is None:
        json_format = os.environ.get(f"{env_prefix}_LOG_JSON", "false").lower() == "true"

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
    )


def get_logger(name: str = "envstack", debug: bool = False) -> Logger:
    """Get a logger configured from environment variables.

    Args:
        name: Logger name
        debug: Force DEBUG level regardless of {PREFIX}_LOG_LEVEL

    Returns:
        A configured Logger instance
    """
    return create_logger(name=name, level=logging.DEBUG if debug else None)


_component_loggers: Dict[str, Logger] = {}
_component_lock = threading.Lock()


def get_component_logger(component: str, debug: bool = False) -> Logger:
    """Process-wide logger for one envstack component.

    The logger is named "envstack.{component}" and is created on the first
    call only; later calls return the same instance, so constructing loaders
    or watch sessions never resets levels or handlers already in use.

    Args:
        component: Component name, e.g. "loader" or "watch"
        debug: Force DEBUG level when the logger is first created
    """
    with _component_lock:
        logger = _component_loggers.get(component)
        if logger is None:
            logger = get_logger(f"envstack.{component}", debug=debug)
            _component_loggers[component] = logger
        return logger


__all__ = [
    "Logger",
    "DefaultLogger",
    "StructuredLogger",
    "JsonFormatter",
    "TextFormatter",
    "create_logger",
    "get_logger",
    "get_component_logger",
]
