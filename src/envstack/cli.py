"""Command line interface for envstack.

USAGE:
    envstack [global options] resolve [FILE ...]
    envstack [global options] load [FILE ...] [--overload] [--format text|json]
    envstack [global options] run [-f FILE ...] [--overload] -- CMD [ARG ...]
    envstack [global options] watch [FILE ...] [--reload]

GLOBAL OPTIONS:
    --path DIR            Search directory (repeatable, default: .)
    --git                 Also look in the git repository root
    --module              Also look in the Python project root
    --no-name-expansion   Keep $VAR in file names verbatim
    --no-path-expansion   Keep $VAR in search directories verbatim
    --debug               Print resolution and merge diagnostics to stderr

Defaults for every option come from ENVSTACK_* variables (see Policy.from_env).

EXIT STATUS:
    0  success
    1  one or more files failed to parse, or a bad configuration
    2  no files to load
"""

import argparse
import json
import subprocess
import sys
import time
from typing import List, Optional

from envstack.config import Policy
from envstack.exceptions import AggregateLoadError, ConfigurationError, NoFilesToLoadError
from envstack.loader import EnvLoader, LoadResult

EXIT_OK = 0
EXIT_LOAD_ERROR = 1
EXIT_NO_FILES = 2


def build_policy(args: argparse.Namespace) -> Policy:
    """Policy from ENVSTACK_* defaults overlaid with command line flags."""
    policy = Policy.from_env()
    if args.path:
        policy.paths = list(args.path)
    policy.lookup_git = policy.lookup_git or args.git
    policy.lookup_module = policy.lookup_module or args.module
    policy.disable_name_expansion = policy.disable_name_expansion or args.no_name_expansion
    policy.disable_path_expansion = policy.disable_path_expansion or args.no_path_expansion
    policy.debug = policy.debug or args.debug
    return policy


def _merge(loader: EnvLoader, files: List[str], overload: bool) -> LoadResult:
    if overload:
        return loader.overload(*files)
    return loader.load(*files)


def cmd_resolve(loader: EnvLoader, files: List[str]) -> int:
    paths = loader.resolve(*files)
    if not paths:
        print("No files to load", file=sys.stderr)
        return EXIT_NO_FILES
    for path in paths:
        print(path)
    return EXIT_OK


def cmd_load(loader: EnvLoader, files: List[str], overload: bool, output_format: str) -> int:
    status = EXIT_OK
    try:
        result = _merge(loader, files, overload)
    except NoFilesToLoadError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_NO_FILES
    except AggregateLoadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        result = e.result or LoadResult()
        status = EXIT_LOAD_ERROR

    if output_format == "json":
        print(json.dumps({
            "loaded": [str(p) for p in result.loaded],
            "failed": [str(err.path) for err in result.errors],
            "applied": result.applied,
        }, indent=2))
    else:
        for key, value in result.applied.items():
            print(f"{key}={value}")
    return status


def cmd_run(loader: EnvLoader, files: List[str], overload: bool, command: List[str]) -> int:
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("ERROR: no command given after --", file=sys.stderr)
        return EXIT_LOAD_ERROR

    try:
        _merge(loader, files, overload)
    except NoFilesToLoadError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_NO_FILES
    except AggregateLoadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    # os.environ now holds the merged values and is inherited by the child
    return subprocess.run(command).returncode


def cmd_watch(loader: EnvLoader, files: List[str], reload: bool) -> int:
    def on_change(event) -> None:
        print(f"{event.event_type} {event.src_path}", flush=True)
        if reload:
            try:
                result = loader.overload(*files)
            except (NoFilesToLoadError, AggregateLoadError) as e:
                print(f"ERROR: {e}", file=sys.stderr, flush=True)
                return
            for key in result.applied:
                print(f"  reloaded {key}", flush=True)

    sessions = loader.watch_config(on_change, files)
    if not sessions:
        print("No files to watch", file=sys.stderr)
        return EXIT_NO_FILES

    for session in sessions:
        print(f"watching {session.path}", flush=True)

    try:
        while any(session.active for session in sessions):
            time.sleep(0.5)
    except KeyboardInterrupt:
        for session in sessions:
            session.stop()
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envstack",
        description="Resolve, load and watch layered .env files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
  Show which files would be loaded:
    %(prog)s --git resolve .env .env.local

  Print what a load would set, as JSON:
    %(prog)s load --format json

  Run a command with config/.env overriding the current environment:
    %(prog)s --path config run --overload -- python app.py

  Print a line whenever .env changes:
    %(prog)s watch
        """,
    )

    parser.add_argument(
        "--path", "-p",
        action="append",
        help="Search directory (repeatable). Default: ENVSTACK_PATHS or the working directory",
    )
    parser.add_argument("--git", action="store_true", help="Also look in the git repository root")
    parser.add_argument("--module", action="store_true", help="Also look in the Python project root")
    parser.add_argument(
        "--no-name-expansion",
        action="store_true",
        help="Do not expand $VAR references in file names",
    )
    parser.add_argument(
        "--no-path-expansion",
        action="store_true",
        help="Do not expand $VAR references in search directories",
    )
    parser.add_argument("--debug", "-v", action="store_true", help="Print diagnostics to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    resolve_parser = subparsers.add_parser("resolve", help="Print resolved files, one per line")
    resolve_parser.add_argument("files", nargs="*", help="File names (default: ENVSTACK_FILES or .env)")

    load_parser = subparsers.add_parser("load", help="Load files and print the values that were set")
    load_parser.add_argument("files", nargs="*", help="File names (default: ENVSTACK_FILES or .env)")
    load_parser.add_argument("--overload", action="store_true", help="Overwrite variables already set")
    load_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format. Default: %(default)s",
    )

    run_parser = subparsers.add_parser("run", help="Load files, then run a command")
    run_parser.add_argument("--overload", action="store_true", help="Overwrite variables already set")
    run_parser.add_argument(
        "--file", "-f",
        action="append",
        dest="files",
        default=[],
        help="File name (repeatable, default: ENVSTACK_FILES or .env)",
    )
    run_parser.add_argument("cmd", nargs=argparse.REMAINDER, help="Command to run, after --")

    watch_parser = subparsers.add_parser("watch", help="Report changes to resolved files")
    watch_parser.add_argument("files", nargs="*", help="File names (default: ENVSTACK_FILES or .env)")
    watch_parser.add_argument("--reload", action="store_true", help="Overload the files on every change")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_LOAD_ERROR

    try:
        policy = build_policy(args)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    loader = EnvLoader(policy)

    if args.command == "resolve":
        return cmd_resolve(loader, args.files)
    elif args.command == "load":
        return cmd_load(loader, args.files, args.overload, args.format)
    elif args.command == "run":
        return cmd_run(loader, args.files, args.overload, args.cmd)
    elif args.command == "watch":
        return cmd_watch(loader, args.files, args.reload)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
