"""
Live reload for env files
=========================
A WatchSession observes the directory holding one env file and calls back
when that file changes.

The directory is watched rather than the file so that editors replacing the
file through a rename, and config-map style mounts swapping a symlink, are
both seen.

Lifecycle:
    INITIALIZING -> WATCHING -> STOPPED   (file removed, or stop())
                             -> ERRORED   (notification thread died)
    INITIALIZING -> ERRORED               (watch could not be armed)

STOPPED and ERRORED are terminal. Watch the file again with a new session.

Example:
    session = WatchSession(".env", lambda event: loader.overload()).start()
    ...
    session.stop()
"""

import enum
import os
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from envstack.exceptions import EnvStackError, WatchSetupError, WatchStreamError
from envstack.logger import Logger, get_component_logger

ChangeCallback = Callable[[FileSystemEvent], None]

_STOP = object()


class WatchState(str, enum.Enum):
    INITIALIZING = "initializing"
    WATCHING = "watching"
    STOPPED = "stopped"
    ERRORED = "errored"


class _Forwarder(FileSystemEventHandler):
    """Hands every watchdog event to the session's queue."""

    def __init__(self, events: "queue.Queue") -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._events.put(event)


def _real_path(path: str) -> str:
    """Symlink-resolved path, or "" when the file is missing."""
    if not os.path.exists(path):
        return ""
    return os.path.realpath(path)


class WatchSession:
    """Watch one env file and report changes to a callback.

    The callback is only ever invoked from the session's worker thread.
    """

    def __init__(
        self,
        path: Union[str, "os.PathLike[str]"],
        callback: ChangeCallback,
        logger: Optional[Logger] = None,
        debounce: float = 0.1,
        poll_interval: float = 0.5,
    ):
        """Create a session; nothing is watched until start().

        Args:
            path: The env file to watch
            callback: Called with the triggering watchdog event
            logger: Receives session failures (default: the shared "envstack.watch" logger)
            debounce: Seconds during which further changes are folded into
                one callback invocation
            poll_interval: How often the worker checks the notification thread
        """
        self.path = Path(os.path.abspath(os.path.normpath(os.fspath(path))))
        self.callback = callback
        self.debounce = debounce
        self.poll_interval = poll_interval
        self._logger = logger or get_component_logger("watch")

        self._file = str(self.path)
        self._directory = str(self.path.parent)
        self._real = _real_path(self._file)

        self._events: "queue.Queue" = queue.Queue()
        self._observer: Optional[Observer] = None
        self._worker: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self._stop_requested = threading.Event()
        self._state = WatchState.INITIALIZING
        self._error: Optional[EnvStackError] = None
        self._calls = 0

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def error(self) -> Optional[EnvStackError]:
        """The setup or stream failure that ended the session, if any"""
        return self._error

    @property
    def active(self) -> bool:
        return self._state is WatchState.WATCHING

    @property
    def calls(self) -> int:
        """How many times the callback has been invoked (coalesced changes count once)"""
        return self._calls

    def start(self) -> "WatchSession":
        """Start the worker and block until the watch is armed.

        Returns:
            self for chaining

        Raises:
            WatchSetupError: If the directory could not be watched
        """
        if self._worker is not None:
            raise RuntimeError(f"watch session for {self.path} already started")

        self._worker = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"envstack-watch-{self.path.name}",
        )
        self._worker.start()
        self._ready.wait()

        if self._state is WatchState.ERRORED and isinstance(self._error, WatchSetupError):
            raise self._error
        return self

    def stop(self) -> None:
        """End the session; the callback will not be called again."""
        self._stop_requested.set()
        self._events.put(_STOP)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker to exit. Returns True once it has."""
        if self._worker is None:
            return True
        self._worker.join(timeout)
        return not self._worker.is_alive()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self) -> None:
        try:
            self._arm()
            self._state = WatchState.WATCHING
        except WatchSetupError as e:
            self._fail(e)
        except Exception as e:
            self._fail(WatchSetupError(self.path, repr(e)))
        finally:
            # start() blocks on this, whatever happened while arming
            self._ready.set()

        if self._state is not WatchState.WATCHING:
            return

        try:
            self._watch()
        finally:
            self._disarm()

    def _arm(self) -> None:
        if not os.path.isdir(self._directory):
            raise WatchSetupError(self.path, f"directory {self._directory} does not exist")

        observer = Observer()
        try:
            observer.schedule(_Forwarder(self._events), self._directory, recursive=False)
            observer.start()
        except (OSError, RuntimeError) as e:
            raise WatchSetupError(self.path, str(e)) from e
        self._observer = observer

    def _disarm(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)

    def _fail(self, error: EnvStackError) -> None:
        self._logger.error(error.message, path=str(self.path), code=error.code)
        self._error = error
        self._state = WatchState.ERRORED

    def _next_event(self, timeout: float):
        try:
            return self._events.get(timeout=timeout)
        except queue.Empty:
            return None

    def _watch(self) -> None:
        while not self._stop_requested.is_set():
            event = self._next_event(self.poll_interval)

            if event is None:
                if self._observer is not None and not self._observer.is_alive():
                    self._fail(WatchStreamError(self.path, "notification thread exited"))
                    return
                continue

            if event is _STOP:
                break

            if self._is_removal(event):
                break

            if not self._is_change(event):
                continue

            last, removed = self._coalesce(event)
            if self._stop_requested.is_set():
                break
            self._notify(last)
            if removed:
                break

        if self._state is WatchState.WATCHING:
            self._state = WatchState.STOPPED

    def _coalesce(self, event: FileSystemEvent):
        """Fold changes arriving within the debounce window into one."""
        last, removed = event, False
        deadline = time.monotonic() + self.debounce
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            nxt = self._next_event(remaining)
            if nxt is None:
                break
            if nxt is _STOP:
                self._stop_requested.set()
                break
            if self._is_removal(nxt):
                removed = True
                break
            if self._is_change(nxt):
                last = nxt
        return last, removed

    def _notify(self, event: FileSystemEvent) -> None:
        self._calls += 1
        try:
            self.callback(event)
        except Exception as e:
            self._logger.error(
                "Config change callback failed", path=str(self.path), error=repr(e)
            )
        self._real = _real_path(self._file)

    # ------------------------------------------------------------------
    # Event classification
    # ------------------------------------------------------------------

    @staticmethod
    def _event_path(path) -> str:
        return os.path.normpath(os.fsdecode(path))

    def _is_removal(self, event: FileSystemEvent) -> bool:
        return (
            event.event_type == EVENT_TYPE_DELETED
            and self._event_path(event.src_path) == self._file
        )

    def _is_change(self, event: FileSystemEvent) -> bool:
        if event.event_type in (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED):
            if self._event_path(event.src_path) == self._file:
                return True
        elif event.event_type == EVENT_TYPE_MOVED:
            dest = getattr(event, "dest_path", "")
            if dest and self._event_path(dest) == self._file:
                return True

        # Atomic swap of a symlinked target (e.g. a Kubernetes ConfigMap mount)
        current = _real_path(self._file)
        return bool(current) and current != self._real


def watch(
    path: Union[str, "os.PathLike[str]"],
    callback: ChangeCallback,
    logger: Optional[Logger] = None,
) -> WatchSession:
    """Start watching a single file; returns once the watch is armed."""
    return WatchSession(path, callback, logger=logger).start()
