"""Read a single env file through python-dotenv.

python-dotenv tokenizes the file (quotes, escapes, comments, ``export``).
Variable substitution is done here rather than by ``dotenv_values`` because
python-dotenv only knows ``${VAR}``: envstack also expands bare ``$VAR``,
honours ``\\$`` as a literal dollar, and leaves single-quoted values alone.

python-dotenv logs and skips statements it cannot parse; here a malformed
statement fails the whole file so the loader can report it.
"""

import io
import os
import re
from pathlib import Path
from typing import Dict, Mapping, Union

from dotenv.parser import parse_stream

from envstack.exceptions import FileParseError

# Quote character opening the value of a statement, if any
_value_quote = re.compile(
    r"""\A\s*(?:export[^\S\r\n]+)?(?:'[^']+'|[^=\#\s]+)[^\S\r\n]*=[^\S\r\n]*(?P<quote>['"])?"""
)

_reference = re.compile(
    r"""
    (?P<escaped>\\\$)
    | \$\{(?P<braced>[^}:]*)(?::-(?P<default>[^}]*))?\}
    | \$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)


def _quote_of(statement: str) -> str:
    match = _value_quote.match(statement)
    if match is None:
        return ""
    return match.group("quote") or ""


def expand_value(value: str, values: Mapping[str, str]) -> str:
    """Substitute ``$VAR``, ``${VAR}`` and ``${VAR:-default}`` in one value.

    Names are looked up in ``values`` (keys defined earlier in the same file)
    and then in os.environ. Undefined names without a default become "".
    ``\\$`` yields a literal ``$`` and suppresses substitution.
    """

    def _lookup(match: "re.Match[str]") -> str:
        if match.group("escaped"):
            return "$"
        name = match.group("braced") if match.group("braced") is not None else match.group("bare")
        if name in values:
            return values[name]
        if name in os.environ:
            return os.environ[name]
        return match.group("default") or ""

    return _reference.sub(_lookup, value)


def parse_env_text(text: str, path: Union[str, Path] = "<string>") -> Dict[str, str]:
    """Parse env-file text into a key/value mapping.

    Keys declared without a value (``FOO`` with no ``=``) are dropped.

    Raises:
        FileParseError: If any statement is malformed
    """
    values: Dict[str, str] = {}
    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            raise FileParseError(
                path, f"could not parse statement starting at line {binding.original.line}"
            )
        if binding.key is None or binding.value is None:
            continue

        if _quote_of(binding.original.string) == "'":
            values[binding.key] = binding.value
        else:
            values[binding.key] = expand_value(binding.value, values)
    return values


def parse_env_file(path: Union[str, Path], encoding: str = "utf-8") -> Dict[str, str]:
    """Read and parse one env file.

    Raises:
        FileParseError: If the file cannot be read, decoded or parsed
    """
    file_path = Path(path)
    try:
        text = file_path.read_bytes().decode(encoding)
    except OSError as e:
        raise FileParseError(file_path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise FileParseError(file_path, f"not valid {encoding}: {e.reason}") from e

    return parse_env_text(text, file_path)
