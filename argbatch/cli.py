#!/usr/bin/env python3
"""
argbatch CLI

Runs COMMAND over items read from stdin (or --arg-file), splitting them across
as many invocations as the platform's command-line limit requires.

----------------------------------------
Command-Line Argument Formatting Rules:
----------------------------------------
1. Every flag has a full-length version beginning with '--'.
2. Every flag also has an abbreviated version: a single dash and one character.
3. Abbreviated versions cannot be combined (use '-n -0', not '-n0').
"""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Sequence

from . import __version__
from .arg_max import POSIX_ARG_MAX, ArgLimit, resolve_arg_limit
from .config import Settings, load_config, platform_config_default
from .debug_utils import enable_file_logging, set_console_verbosity, set_log_verbosity
from .errors import BatchError, ConfigError
from .partition import command_length, partition
from .runner import target_concurrency, xargs
from .ui import log_error, log_info, log_warning, print_table, section, set_verbose

EXIT_USAGE = 2


def _epilog() -> str:
    return (
        "Examples:\n"
        "  git ls-files '*.py' | argbatch -j 4 black --check\n"
        "  find . -name '*.log' -print0 | argbatch -0 rm -f\n"
        "  argbatch -a files.txt -s 4096 -n wc -l\n"
        "  argbatch -L\n"
        "\n"
        f"Default config path: {platform_config_default()}\n"
    )


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {raw!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {raw!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="argbatch",
        description="Run a command over many arguments, batched under the OS command-line limit.",
        epilog=_epilog(),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    p.add_argument("--version", "-V", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", "-c", help="Path to config TOML (overrides ARGBATCH_CONFIG & defaults)")
    p.add_argument("--verbose", "-v", action="store_true", help="Show progress and resolver diagnostics on stderr")
    p.add_argument("--log-file", "-l", dest="log_file",
                   help="Also append diagnostics to this file (overrides [log] file)")
    p.add_argument("--jobs", "-j", type=_positive_int, help="Number of invocations to run at once (default: CPU count)")
    p.add_argument("--max-chars", "-s", type=_positive_int, dest="max_chars",
                   help="Explicit max command-line length; skips the platform query")
    p.add_argument("--arg-file", "-a", dest="arg_file", help="Read items from this file instead of stdin")
    p.add_argument("--null", "-0", action="store_true", help="Items are separated by NUL, not newlines")
    p.add_argument("--show-limits", "-L", action="store_true", dest="show_limits",
                   help="Print the resolved command-line limits and exit")
    p.add_argument("--dry-run", "-n", action="store_true", dest="dry_run",
                   help="Print the planned invocations without running them")
    p.add_argument("command", nargs=argparse.REMAINDER, help="Command (and leading args) to run")
    return p


def _split_items(data: bytes, delimiter: str) -> List[str]:
    text = data.decode(sys.getfilesystemencoding(), "surrogateescape")
    if delimiter == "null":
        parts = text.split("\0")
    else:
        # only \n ends an item; form feeds and friends are legal in filenames
        parts = [p[:-1] if p.endswith("\r") else p for p in text.split("\n")]
    return [p for p in parts if p.strip()]


def _read_items(arg_file: Optional[str], delimiter: str) -> List[str]:
    if arg_file:
        with open(arg_file, "rb") as f:
            return _split_items(f.read(), delimiter)
    if sys.stdin is None or sys.stdin.isatty():
        return []
    return _split_items(sys.stdin.buffer.read(), delimiter)


def _resolved_limit(max_length: Optional[int]) -> ArgLimit:
    if max_length is not None:
        return ArgLimit(value=max_length, source="override")
    return resolve_arg_limit()


def _show_limits(max_length: Optional[int], jobs: int, settings: Settings) -> None:
    limit = _resolved_limit(max_length)
    if limit.source == "fallback":
        log_warning("Platform refused or lacks the ARG_MAX query; using the POSIX minimum.")
    rows = [
        ("Effective max length", limit.value),
        ("Source", limit.source),
        ("Platform ARG_MAX", limit.raw if limit.raw is not None else "unavailable"),
        ("Environment size", limit.environ_size),
        ("POSIX minimum", POSIX_ARG_MAX),
        ("Target concurrency", jobs),
        ("Config file", settings.source if settings.source is not None else "none"),
    ]
    print_table(["Limit", "Value"], rows, title="argbatch limits")


def _print_plan(partitions) -> None:
    rows = []
    for i, cmd in enumerate(partitions, start=1):
        rows.append((i, len(cmd), command_length(*cmd)))
    print_table(["#", "Words", "Length"], rows, title=f"{len(partitions)} invocation(s)")


def _exit_status(retcode: int) -> int:
    return min(abs(retcode), 255)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    try:
        settings: Settings = load_config(args.config)
    except (FileNotFoundError, ConfigError) as e:
        log_error(str(e))
        return EXIT_USAGE
    set_console_verbosity("Verbose" if args.verbose else settings.verbosity)
    log_file = args.log_file or settings.log_file
    if log_file:
        set_log_verbosity(settings.log_file_verbosity)
        try:
            enable_file_logging(log_file)
        except OSError as e:
            log_error(f"Could not open log file: {e}")
            return EXIT_USAGE

    jobs = args.jobs or settings.jobs or target_concurrency()
    max_length = args.max_chars or settings.max_length

    if args.show_limits:
        _show_limits(max_length, jobs, settings)
        return 0

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("no command given")

    delimiter = "null" if args.null else settings.delimiter
    try:
        items = _read_items(args.arg_file, delimiter)
    except OSError as e:
        log_error(f"Could not read items: {e}")
        return EXIT_USAGE
    log_info(f"{len(items)} item(s), jobs={jobs}, max length={max_length or 'platform'}")

    try:
        if args.dry_run:
            _print_plan(partition(command, items, jobs, max_length))
            return 0
        with section("argbatch"):
            retcode, output = xargs(command, items, target_concurrency=jobs, max_length=max_length)
    except BatchError as e:
        log_error(f"{type(e).__name__}: {e}")
        return EXIT_USAGE

    sys.stdout.buffer.write(output)
    sys.stdout.buffer.flush()
    return _exit_status(retcode)


if __name__ == "__main__":
    sys.exit(main())
