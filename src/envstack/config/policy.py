"""Lookup policy for envstack

Describes which files to look for and where. A Policy is plain data: the
resolver reads it, the loader snapshots it once per call.

Environment variables (see Policy.from_env):
    {prefix}_FILES: Comma separated candidate names (default: .env)
    {prefix}_PATHS: os.pathsep separated search directories (default: .)
    {prefix}_LOOKUP_GIT: Also look in the git repository root
    {prefix}_LOOKUP_MODULE: Also look in the Python project root
    {prefix}_DISABLE_NAME_EXPANSION: Do not interpolate $VAR in names
    {prefix}_DISABLE_PATH_EXPANSION: Do not interpolate $VAR in directories
    {prefix}_DEBUG: Emit debug diagnostics
"""

import os
from dataclasses import dataclass, field, replace
from typing import List, Mapping, Optional

from envstack.exceptions import ConfigurationError

DEFAULT_ENV_FILE = ".env"
DEFAULT_PREFIX = "ENVSTACK"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"", "0", "false", "no", "off"}


def _parse_bool(value: Optional[str], name: str) -> bool:
    """Convert an optional string flag to bool, raising a clear error when invalid."""
    if value is None:
        return False
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean, got {value!r}",
        details={"variable": name, "value": value},
    )


def _split(value: Optional[str], sep: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(sep) if item.strip()]


@dataclass
class Policy:
    """File lookup configuration

    Attributes:
        files: Candidate file names, in order; empty means [".env"]
        paths: Search directories, in order; default is the working directory
        lookup_git: Also try each name at the git repository root
        lookup_module: Also try each name at the Python project root
        disable_name_expansion: Keep $VAR references in names verbatim
        disable_path_expansion: Keep $VAR references in directories verbatim
        debug: Emit debug diagnostics while resolving and loading
    """

    files: List[str] = field(default_factory=list)
    paths: List[str] = field(default_factory=lambda: ["."])
    lookup_git: bool = False
    lookup_module: bool = False
    disable_name_expansion: bool = False
    disable_path_expansion: bool = False
    debug: bool = False

    def files_or_default(self) -> List[str]:
        """Candidate names, falling back to the default file name"""
        if not self.files:
            return [DEFAULT_ENV_FILE]
        return list(self.files)

    def copy(self) -> "Policy":
        """Independent copy, safe to hand to a resolver while the original mutates"""
        return replace(self, files=list(self.files), paths=list(self.paths))

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_PREFIX,
        env: Optional[Mapping[str, str]] = None,
    ) -> "Policy":
        """Load a policy from environment variables

        Args:
            prefix: Environment variable prefix
            env: Mapping to read instead of os.environ

        Raises:
            ConfigurationError: If a boolean variable holds an unknown value
        """
        source = os.environ if env is None else env

        paths = _split(source.get(f"{prefix}_PATHS"), os.pathsep)

        return cls(
            files=_split(source.get(f"{prefix}_FILES"), ","),
            paths=paths or ["."],
            lookup_git=_parse_bool(source.get(f"{prefix}_LOOKUP_GIT"), f"{prefix}_LOOKUP_GIT"),
            lookup_module=_parse_bool(
                source.get(f"{prefix}_LOOKUP_MODULE"), f"{prefix}_LOOKUP_MODULE"
            ),
            disable_name_expansion=_parse_bool(
                source.get(f"{prefix}_DISABLE_NAME_EXPANSION"), f"{prefix}_DISABLE_NAME_EXPANSION"
            ),
            disable_path_expansion=_parse_bool(
                source.get(f"{prefix}_DISABLE_PATH_EXPANSION"), f"{prefix}_DISABLE_PATH_EXPANSION"
            ),
            debug=_parse_bool(source.get(f"{prefix}_DEBUG"), f"{prefix}_DEBUG"),
        )
