from __future__ import annotations

"""
Platform argument-length resolver.

Answers one question: how many bytes may a single batched command line use?

- POSIX-like systems: derived from sysconf("SC_ARG_MAX"), minus headroom and
  the environment block, clamped into [POSIX_ARG_MAX, PRACTICAL_MAX_LENGTH].
- Windows: the CreateProcess command-line limit minus headroom.
- Anything else, or a sandbox that refuses the sysconf query: POSIX_ARG_MAX.

Nothing here runs at import time. Callers resolve the limit when they are
about to batch, so a denied query can never stop the program from loading.
"""

import os
import platform
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from .debug_utils import write_debug

# Minimum ARG_MAX every POSIX system must provide.
POSIX_ARG_MAX = 2 ** 12
# Upper bound we are willing to use even when the platform reports more.
PRACTICAL_MAX_LENGTH = 2 ** 17
# Room left for the command itself being rewritten or wrapped by the OS.
ARG_MAX_HEADROOM = 2048
# UNICODE_STRING limit for a CreateProcess command line, in characters.
WINDOWS_MAX_LENGTH = 2 ** 15 - ARG_MAX_HEADROOM
# cmd.exe's own line limit, which applies to .bat/.cmd targets.
CMD_EXE_MAX_LENGTH = 8192
# Extra slack for variable expansion inside a batch file.
BATCH_FILE_HEADROOM = 1024

EnvMapping = Mapping[Union[str, bytes], Union[str, bytes]]


@dataclass(frozen=True)
class ArgLimit:
    value: int                    # effective max length used for batching
    source: str                   # "sysconf", "fallback", "windows", "batch-file", "override"
    raw: Optional[int] = None     # platform-reported ARG_MAX, None if unavailable
    environ_size: int = 0


def environ_size(env: Optional[EnvMapping] = None) -> int:
    """Bytes the environment takes in the child's argument area (envp pointers + C strings)."""
    environ = env if env is not None else getattr(os, "environb", os.environ)
    size = 8 * len(environ)
    for k, v in environ.items():
        size += len(k) + len(v) + 2
    return size


def _query_arg_max() -> int:
    return os.sysconf("SC_ARG_MAX")


def resolve_arg_limit() -> ArgLimit:
    """Resolve the effective max length for the current platform, with provenance."""
    system = platform.system().lower()
    if system == "windows":
        return ArgLimit(value=WINDOWS_MAX_LENGTH, source="windows")

    if not hasattr(os, "sysconf"):
        write_debug(f"No sysconf on '{system}'; using POSIX minimum {POSIX_ARG_MAX}.", channel="Verbose")
        return ArgLimit(value=POSIX_ARG_MAX, source="fallback")

    try:
        arg_max = _query_arg_max()
    except (OSError, ValueError) as e:
        # Sandboxes (seccomp, some container runtimes) refuse the query outright.
        write_debug(f"SC_ARG_MAX query failed ({e}); using POSIX minimum {POSIX_ARG_MAX}.", channel="Verbose")
        return ArgLimit(value=POSIX_ARG_MAX, source="fallback")

    env_bytes = environ_size()
    available = arg_max - ARG_MAX_HEADROOM - env_bytes
    effective = max(min(available, PRACTICAL_MAX_LENGTH), POSIX_ARG_MAX)
    write_debug(
        f"SC_ARG_MAX={arg_max}, environment={env_bytes}B -> max command length {effective}",
        channel="Verbose",
    )
    return ArgLimit(value=effective, source="sysconf", raw=arg_max, environ_size=env_bytes)


def platform_max_length() -> int:
    """Max byte length of one batched command line. Never raises for a denied query."""
    return resolve_arg_limit().value


def batch_file_max_length(cmd_exe: str) -> int:
    """Limit for .bat/.cmd targets, which run as `<cmd_exe> /c <command>`."""
    return CMD_EXE_MAX_LENGTH - len(cmd_exe) - len(" /c ") - BATCH_FILE_HEADROOM
