"""
Plain stream logger.

Writes one formatted line per message to a text stream (default: stderr).
Handy in tests, where an ``io.StringIO`` can capture loader diagnostics.
"""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, TextIO

from .interface import Logger


class DefaultLogger(Logger):
    """Logger writing ``[LEVEL] [name] [session:xxxxxxxx] message (k=v)`` lines.

    Example:
        logger = DefaultLogger(output=io.StringIO(), include_timestamp=False)
        loader = EnvLoader(logger=logger)

        # Only failures
        logger = DefaultLogger(level=logging.ERROR)
    """

    def __init__(
        self,
        name: str = "envstack",
        output: TextIO = sys.stderr,
        include_timestamp: bool = True,
        level: int = logging.DEBUG,
    ):
        """Initialize the default logger.

        Args:
            name: Logger name (included in output for identification)
            output: Output stream (default: stderr)
            include_timestamp: Whether to prefix lines with an ISO timestamp
            level: Messages below this ``logging`` level are dropped
        """
        self._name = name
        self._session_id = str(uuid.uuid4())
        self._output = output
        self._include_timestamp = include_timestamp
        self.level = level

    def get_session_id(self) -> str:
        return self._session_id

    def _format_message(self, level: int, message: str, **kwargs: Any) -> str:
        prefix = f"[{logging.getLevelName(level)}] [{self._name}] [session:{self._session_id[:8]}]"
        if self._include_timestamp:
            prefix = f"{datetime.now(timezone.utc).isoformat()} {prefix}"

        line = f"{prefix} {message}"
        if kwargs:
            line += " (" + " ".join(f"{k}={v}" for k, v in kwargs.items()) + ")"
        return line

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        if level < self.level:
            return
        print(self._format_message(level, message, **kwargs), file=self._output, flush=True)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, **kwargs)
