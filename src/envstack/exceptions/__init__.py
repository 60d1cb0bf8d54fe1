"""Exceptions raised by envstack.

All exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Usage:
    from envstack.exceptions import (
        EnvStackError,
        NoFilesToLoadError,
        FileParseError,
        AggregateLoadError,
    )
"""

from envstack.exceptions.base import (
    AggregateLoadError,
    ConfigurationError,
    EnvStackError,
    FileParseError,
    NoFilesToLoadError,
    WatchSetupError,
    WatchStreamError,
)

__all__ = [
    "EnvStackError",
    "ConfigurationError",
    "NoFilesToLoadError",
    "FileParseError",
    "AggregateLoadError",
    "WatchSetupError",
    "WatchStreamError",
]
