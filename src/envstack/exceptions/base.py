"""Base exception classes for envstack.

All envstack exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

if TYPE_CHECKING:
    from envstack.loader import LoadResult


class EnvStackError(Exception):
    """Base exception for all envstack errors.

    Attributes:
        code: Machine-readable error code (e.g., "FILE_PARSE_ERROR")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with structured information.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            details: Optional additional context
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, and details keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(EnvStackError):
    """Raised when policy configuration read from the environment is invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="CONFIGURATION_ERROR", message=message, details=details)


class NoFilesToLoadError(EnvStackError):
    """Raised when resolution produced no existing files.

    Nothing is merged into the environment when this is raised.
    """

    def __init__(self, message: str = "No files to load", details: Optional[Dict[str, Any]] = None):
        super().__init__(code="NO_FILES_TO_LOAD", message=message, details=details)


class FileParseError(EnvStackError):
    """A single file could not be read or parsed.

    Attributes:
        path: The offending file
    """

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            code="FILE_PARSE_ERROR",
            message=f"{self.path}: {reason}",
            details={"path": str(self.path)},
        )

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class AggregateLoadError(EnvStackError):
    """One or more files failed during a single load or overload call.

    Files that parsed are still merged; ``result`` holds what was applied.
    The message joins every individual failure with newlines.
    """

    def __init__(self, errors: List[FileParseError], result: Optional["LoadResult"] = None):
        self.errors = list(errors)
        self.result = result
        super().__init__(
            code="AGGREGATE_LOAD_ERROR",
            message="\n".join(str(err) for err in self.errors),
            details={"failed": [str(err.path) for err in self.errors]},
        )

    def __str__(self) -> str:
        return self.message


class WatchSetupError(EnvStackError):
    """The filesystem watch for a file could not be armed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        super().__init__(
            code="WATCH_SETUP_ERROR",
            message=f"failed to watch {self.path}: {reason}",
            details={"path": str(self.path)},
        )


class WatchStreamError(EnvStackError):
    """The notification stream of an armed watch failed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        super().__init__(
            code="WATCH_STREAM_ERROR",
            message=f"watch on {self.path} failed: {reason}",
            details={"path": str(self.path)},
        )
