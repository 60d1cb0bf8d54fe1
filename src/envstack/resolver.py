"""Turn a lookup Policy into the ordered list of env files that exist.

Resolution runs a pipeline of candidate stages. Each stage appends candidate
paths to a shared accumulator which keeps discovery order and drops
duplicates; the result is then filtered to what exists on disk right now.

Usage:
    from envstack.config import Policy
    from envstack.resolver import resolve

    paths = resolve(Policy(files=[".env", ".env.local"], lookup_git=True))
"""

import os
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from envstack.config import DEFAULT_ENV_FILE, Policy
from envstack.logger import Logger

PathLike = Union[str, "os.PathLike[str]"]

MODULE_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")

_variable = re.compile(r"\$(?:\{(?P<braced>[^}]*)\}|(?P<bare>[A-Za-z_][A-Za-z0-9_]*))")


def expand_variables(value: str) -> str:
    """Replace ``$VAR`` and ``${VAR}`` with values from os.environ.

    Undefined variables expand to an empty string.
    """

    def _lookup(match: "re.Match[str]") -> str:
        name = match.group("braced") if match.group("braced") is not None else match.group("bare")
        return os.environ.get(name, "")

    return _variable.sub(_lookup, value)


def candidate_path(root: PathLike, name: str) -> Path:
    """Join root and name; an existing directory gets the default file name."""
    path = Path(name)
    if not path.is_absolute():
        path = Path(root) / path
    path = Path(os.path.abspath(path))
    if path.is_dir():
        path = path / DEFAULT_ENV_FILE
    return path


class CandidateSet:
    """Ordered accumulator of candidate paths, deduplicated by absolute path."""

    def __init__(self) -> None:
        self._paths: Dict[Path, None] = {}

    def add(self, path: Path) -> None:
        self._paths.setdefault(path, None)

    def extend(self, paths: Iterable[Path]) -> None:
        for path in paths:
            self.add(path)

    def __iter__(self):
        return iter(list(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    def existing(self) -> List[Path]:
        return [path for path in self._paths if path.exists()]


class CandidateStage(ABC):
    """One source of candidate paths in the resolution pipeline."""

    name = "stage"

    @abstractmethod
    def candidates(self, policy: Policy, names: Sequence[str]) -> Iterable[Path]:
        """Yield candidate paths for the given names.

        Args:
            policy: Policy in effect for this resolution
            names: Candidate file names, already interpolated

        Returns:
            Candidate paths in discovery order; existence is checked later
        """
        pass


class SearchPathStage(CandidateStage):
    """Each name under each search directory, names first."""

    name = "search-paths"

    def candidates(self, policy: Policy, names: Sequence[str]) -> Iterable[Path]:
        directories = [
            directory if policy.disable_path_expansion else expand_variables(directory)
            for directory in policy.paths
        ]
        for name in names:
            for directory in directories:
                yield candidate_path(directory, name)


class RootStage(CandidateStage):
    """Each name under a single discovered root directory."""

    def candidates(self, policy: Policy, names: Sequence[str]) -> Iterable[Path]:
        if not self.enabled(policy):
            return []
        root = self.find_root()
        if not root:
            return []
        return [candidate_path(root, name) for name in names]

    @abstractmethod
    def enabled(self, policy: Policy) -> bool:
        pass

    @abstractmethod
    def find_root(self) -> Optional[Path]:
        pass


class RepoRootStage(RootStage):
    """Names under the top-level directory of the enclosing git repository."""

    name = "repo-root"

    def enabled(self, policy: Policy) -> bool:
        return policy.lookup_git

    def find_root(self) -> Optional[Path]:
        return git_repo_root()


class ModuleRootStage(RootStage):
    """Names under the nearest directory holding a Python project marker."""

    name = "module-root"

    def enabled(self, policy: Policy) -> bool:
        return policy.lookup_module

    def find_root(self) -> Optional[Path]:
        return module_root()


def git_repo_root(cwd: Optional[PathLike] = None) -> Optional[Path]:
    """Top-level directory of the git repository, or None when not in one."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
        )
    except OSError:
        return None

    output = result.stdout.strip()
    if result.returncode != 0 or not output:
        return None
    return Path(output)


def module_root(start: Optional[PathLike] = None) -> Optional[Path]:
    """Walk up from start (default: cwd) to the first directory with a project marker."""
    current = Path(start or Path.cwd()).resolve()
    while True:
        if any((current / marker).is_file() for marker in MODULE_MARKERS):
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent


def default_stages() -> List[CandidateStage]:
    return [SearchPathStage(), RepoRootStage(), ModuleRootStage()]


class Resolver:
    """Resolve a Policy into existing absolute file paths.

    Example:
        resolver = Resolver()
        for path in resolver.resolve(policy, ["config/.env.test"]):
            print(path)
    """

    def __init__(
        self,
        stages: Optional[Sequence[CandidateStage]] = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize the resolver.

        Args:
            stages: Candidate stages in pipeline order (default: search paths,
                repository root, module root)
            logger: Receives debug diagnostics when the policy enables debug
        """
        self.stages = list(stages) if stages is not None else default_stages()
        self._logger = logger

    def _debug(self, policy: Policy, message: str, **kwargs) -> None:
        if policy.debug and self._logger is not None:
            self._logger.debug(message, **kwargs)

    def candidate_names(self, policy: Policy, explicit_files: Sequence[PathLike] = ()) -> List[str]:
        names = [os.fspath(f) for f in explicit_files] or policy.files_or_default()
        if not policy.disable_name_expansion:
            names = [expand_variables(name) for name in names]
        return names

    def resolve(self, policy: Policy, explicit_files: Sequence[PathLike] = ()) -> List[Path]:
        """Resolve candidate files.

        Args:
            policy: Lookup policy; not modified
            explicit_files: Names that replace the policy's candidate names

        Returns:
            Existing absolute paths in discovery order, without duplicates
        """
        names = self.candidate_names(policy, explicit_files)
        self._debug(policy, "Files to resolve", files=names)

        accumulator = CandidateSet()
        for stage in self.stages:
            before = len(accumulator)
            accumulator.extend(stage.candidates(policy, names))
            self._debug(policy, "Stage produced candidates", stage=stage.name, count=len(accumulator) - before)

        resolved = accumulator.existing()
        for path in accumulator:
            if path not in resolved:
                self._debug(policy, "File does not exist", path=path)

        self._debug(policy, "Resolved files", files=[str(p) for p in resolved])
        return resolved


def resolve(policy: Optional[Policy] = None, *files: PathLike) -> List[Path]:
    """Resolve files for a policy (default: Policy()) with a fresh Resolver."""
    return Resolver().resolve(policy or Policy(), files)
