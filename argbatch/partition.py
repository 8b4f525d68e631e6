from __future__ import annotations

import math
import sys
from typing import Optional, Sequence, Tuple

from . import arg_max
from .errors import ArgumentTooLongError

# Never split the work into partitions smaller than this.
MIN_ARGS_PER_PARTITION = 4


def command_length(*cmd: str) -> int:
    """
    Length of the command line as the OS counts it.

    Windows limits characters (UTF-16 code units); everything else limits bytes
    in the filesystem encoding.
    """
    full_cmd = " ".join(cmd)
    if sys.platform == "win32":
        return len(full_cmd.encode("utf-16le")) // 2
    return len(full_cmd.encode(sys.getfilesystemencoding(), "surrogateescape"))


def partition(
    cmd: Sequence[str],
    varargs: Sequence[str],
    target_concurrency: int,
    max_length: Optional[int] = None,
) -> Tuple[Tuple[str, ...], ...]:
    """
    Split `varargs` over as many copies of `cmd` as needed.

    Each resulting command stays within `max_length` and holds at most
    ceil(len(varargs) / target_concurrency) arguments (but no fewer than
    MIN_ARGS_PER_PARTITION), so the work spreads across workers without
    producing lots of tiny invocations.

    max_length=None resolves the platform limit now; an explicit value is used as-is.
    """
    if max_length is None:
        max_length = arg_max.platform_max_length()

    max_args = max(MIN_ARGS_PER_PARTITION, math.ceil(len(varargs) / max(target_concurrency, 1)))
    cmd = tuple(cmd)
    base_length = command_length(*cmd) + 1

    partitions = []
    current: list[str] = []
    total_length = base_length
    for arg in varargs:
        arg_length = command_length(arg) + 1
        if current and (total_length + arg_length > max_length or len(current) >= max_args):
            partitions.append(cmd + tuple(current))
            current = []
            total_length = base_length
        if total_length + arg_length > max_length:
            raise ArgumentTooLongError(arg)
        current.append(arg)
        total_length += arg_length

    partitions.append(cmd + tuple(current))
    return tuple(partitions)
