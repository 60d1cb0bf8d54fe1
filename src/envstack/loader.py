"""Merge resolved env files into the process environment.

Two precedence modes:
1) load: keys already present in os.environ before the call are kept
2) overload: every key is written, later files win

Usage:
    from envstack import EnvLoader

    loader = EnvLoader().lookup_file(".env").lookup_file(".env.local").lookup_git()
    result = loader.load()

Every mutating accessor holds the loader's lock, so one instance can be
shared between threads.
"""

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from envstack.config import Policy
from envstack.exceptions import (
    AggregateLoadError,
    FileParseError,
    NoFilesToLoadError,
    WatchSetupError,
)
from envstack.logger import Logger, get_component_logger
from envstack.parser import parse_env_file
from envstack.resolver import PathLike, Resolver
from envstack.watcher import WatchSession

ParseFunc = Callable[[Path], Dict[str, str]]


@dataclass
class LoadResult:
    """Outcome of one load or overload call

    Attributes:
        loaded: Files merged successfully, in resolution order
        errors: Per-file failures, in resolution order
        applied: Keys this call wrote into os.environ, with their values
    """

    loaded: List[Path] = field(default_factory=list)
    errors: List[FileParseError] = field(default_factory=list)
    applied: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Optional[AggregateLoadError]:
        """All failures of the call as one error, or None"""
        if not self.errors:
            return None
        return AggregateLoadError(self.errors, self)


class EnvLoader:
    """Resolve env files for a policy and merge them into os.environ.

    Example:
        loader = EnvLoader(Policy(files=["config/.env"]))
        try:
            loader.load()
        except NoFilesToLoadError:
            pass

        # Keep values current
        loader.watch_config(lambda event: loader.overload())
    """

    def __init__(
        self,
        policy: Optional[Policy] = None,
        logger: Optional[Logger] = None,
        resolver: Optional[Resolver] = None,
        parse: ParseFunc = parse_env_file,
    ) -> None:
        """Initialize the loader.

        Args:
            policy: Lookup policy (default: Policy())
            logger: Diagnostics sink (default: the shared "envstack.loader" logger)
            resolver: Resolver to use (default: Resolver with default stages)
            parse: Turns one file into a key/value mapping, raising FileParseError
        """
        self._lock = threading.Lock()
        self._policy = policy or Policy()
        # Debug output is gated by policy.debug, not by the logger level
        self._logger = logger or get_component_logger("loader", debug=True)
        self._resolver = resolver or Resolver(logger=self._logger)
        self._parse = parse
        self._files: List[Path] = []
        self._on_change: Optional[Callable] = None

    @classmethod
    def from_env(cls, prefix: str = "ENVSTACK", logger: Optional[Logger] = None) -> "EnvLoader":
        """Build a loader whose policy comes from {prefix}_* variables"""
        return cls(Policy.from_env(prefix), logger=logger)

    @property
    def policy(self) -> Policy:
        """Copy of the current policy"""
        with self._lock:
            return self._policy.copy()

    @property
    def loaded_files(self) -> List[Path]:
        """Every file merged by this loader, across calls, in merge order"""
        with self._lock:
            return list(self._files)

    def _debug(self, policy: Policy, message: str, **kwargs) -> None:
        if policy.debug:
            self._logger.debug(message, **kwargs)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def _update(self, **changes) -> "EnvLoader":
        with self._lock:
            for name, value in changes.items():
                setattr(self._policy, name, value)
        return self

    def lookup_git(self) -> "EnvLoader":
        return self._update(lookup_git=True)

    def lookup_module(self) -> "EnvLoader":
        return self._update(lookup_module=True)

    def disable_name_expansion(self) -> "EnvLoader":
        return self._update(disable_name_expansion=True)

    def disable_path_expansion(self) -> "EnvLoader":
        return self._update(disable_path_expansion=True)

    def enable_debug(self) -> "EnvLoader":
        return self._update(debug=True)

    def lookup_file(self, name: PathLike) -> "EnvLoader":
        """Append a candidate file name"""
        with self._lock:
            self._policy.files.append(os.fspath(name))
        return self

    def lookup_path(self, path: PathLike) -> "EnvLoader":
        """Append a search directory"""
        with self._lock:
            self._policy.paths.append(os.fspath(path))
        return self

    def reset(self) -> "EnvLoader":
        """Go back to a default policy; the loaded-files record is kept"""
        with self._lock:
            self._policy = Policy()
        return self

    # ------------------------------------------------------------------
    # Resolution and merging
    # ------------------------------------------------------------------

    def resolve(self, *files: PathLike) -> List[Path]:
        """Existing files for the current policy, or for explicit names"""
        return self._resolver.resolve(self.policy, files)

    def load(self, *files: PathLike) -> LoadResult:
        """Merge files without touching keys already in the environment.

        Args:
            *files: Names replacing the policy's candidate names

        Returns:
            LoadResult for this call

        Raises:
            NoFilesToLoadError: If nothing resolved; the environment is untouched
            AggregateLoadError: If any file failed; the others are still merged
        """
        return self._merge(files, overload=False)

    def overload(self, *files: PathLike) -> LoadResult:
        """Merge files, overwriting existing keys; later files win.

        Raises the same errors as load().
        """
        return self._merge(files, overload=True)

    def _merge(self, files, overload: bool) -> LoadResult:
        with self._lock:
            policy = self._policy.copy()
            mode = "overload" if overload else "load"

            paths = self._resolver.resolve(policy, files)
            if not paths:
                self._debug(policy, "No files found to load")
                raise NoFilesToLoadError(details={"files": policy.files_or_default()})

            self._debug(policy, f"Starting {mode}", files=[str(p) for p in paths])

            # Precedence is decided against the environment as it was before this call
            preset = set(os.environ)
            result = LoadResult()

            for path in paths:
                try:
                    values = self._parse(path)
                except FileParseError as e:
                    self._debug(policy, "Loading file failed", path=path, error=e.reason)
                    result.errors.append(e)
                    continue

                for key, value in values.items():
                    if overload or key not in preset:
                        os.environ[key] = value
                        result.applied[key] = value

                result.loaded.append(path)
                self._files.append(path)
                self._debug(policy, "Loaded file", path=path, keys=len(values))

            self._debug(policy, f"Finished {mode}", loaded=len(result.loaded), failed=len(result.errors))

        if result.errors:
            raise AggregateLoadError(result.errors, result)
        return result

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    def on_config_change(self, fn: Callable) -> "EnvLoader":
        """Register the default callback for watch_config()"""
        with self._lock:
            self._on_change = fn
        return self

    def watch_config(
        self, callback: Optional[Callable] = None, files: Sequence[PathLike] = ()
    ) -> List[WatchSession]:
        """Start one watch session per resolved file.

        Each call returns once every session is armed. A file whose watch
        cannot be set up is logged and skipped.

        Args:
            callback: Called with the watchdog event on change (default: the
                function registered with on_config_change)
            files: Names replacing the policy's candidate names

        Returns:
            The started WatchSession objects
        """
        with self._lock:
            fn = callback or self._on_change
        if fn is None:
            raise ValueError("watch_config() needs a callback or on_config_change()")

        sessions = []
        for path in self.resolve(*files):
            session = WatchSession(path, fn, logger=self._logger)
            try:
                session.start()
            except WatchSetupError as e:
                self._logger.error("Could not watch file", path=path, error=e.message)
                continue
            sessions.append(session)
        return sessions


def load(*files: PathLike, policy: Optional[Policy] = None) -> LoadResult:
    """Load files with a fresh EnvLoader; see EnvLoader.load()"""
    return EnvLoader(policy).load(*files)


def overload(*files: PathLike, policy: Optional[Policy] = None) -> LoadResult:
    """Overload files with a fresh EnvLoader; see EnvLoader.overload()"""
    return EnvLoader(policy).overload(*files)
