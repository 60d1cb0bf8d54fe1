"""envstack - layered .env resolution, merging and live reload.

This package provides:
- config: The lookup Policy (candidate names, search directories, toggles)
- resolver: Policy -> ordered list of existing env files
- loader: Merge resolved files into os.environ (load / overload)
- watcher: Call back when a resolved file changes
- logger: Logging with text or JSON output
- exceptions: Structured error classes
"""

__version__ = "1.0.0"

from envstack.config import DEFAULT_ENV_FILE, Policy

from envstack.exceptions import (
    AggregateLoadError,
    ConfigurationError,
    EnvStackError,
    FileParseError,
    NoFilesToLoadError,
    WatchSetupError,
    WatchStreamError,
)

from envstack.logger import (
    DefaultLogger,
    Logger,
    StructuredLogger,
    create_logger,
    get_logger,
)

from envstack.resolver import Resolver, resolve
from envstack.loader import EnvLoader, LoadResult, load, overload
from envstack.watcher import WatchSession, WatchState, watch

__all__ = [
    "__version__",
    # Config
    "Policy",
    "DEFAULT_ENV_FILE",
    # Core
    "Resolver",
    "resolve",
    "EnvLoader",
    "LoadResult",
    "load",
    "overload",
    "WatchSession",
    "WatchState",
    "watch",
    # Logger
    "Logger",
    "DefaultLogger",
    "StructuredLogger",
    "create_logger",
    "get_logger",
    # Exceptions
    "EnvStackError",
    "ConfigurationError",
    "NoFilesToLoadError",
    "FileParseError",
    "AggregateLoadError",
    "WatchSetupError",
    "WatchStreamError",
]
