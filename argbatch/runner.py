from __future__ import annotations

import concurrent.futures as cf
import os
import shutil
import subprocess
import sys
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import psutil

from . import arg_max
from .debug_utils import write_debug
from .errors import ExecutableNotFoundError
from .partition import partition

NO_CONCURRENCY_ENV = "ARGBATCH_NO_CONCURRENCY"


def target_concurrency() -> int:
    """Default number of partitions to run at once."""
    if os.environ.get(NO_CONCURRENCY_ENV):
        return 1
    return psutil.cpu_count(logical=True) or os.cpu_count() or 1


def resolve_executable(cmd: Sequence[str], env: Optional[Mapping[str, str]] = None) -> Tuple[str, ...]:
    """Return `cmd` with its executable replaced by an absolute path."""
    if not cmd:
        raise ExecutableNotFoundError("Executable `` not found")
    exe = cmd[0]
    seps = tuple(s for s in (os.sep, os.altsep) if s)
    if any(s in exe for s in seps):
        found = exe if os.path.isfile(exe) and os.access(exe, os.X_OK) else None
    else:
        path = (env if env is not None else os.environ).get("PATH")
        found = shutil.which(exe, path=path)
    if found is None:
        raise ExecutableNotFoundError(f"Executable `{exe}` not found")
    return (os.path.abspath(found),) + tuple(cmd[1:])


def run_partition(cmd: Sequence[str], **kwargs: Any) -> Tuple[int, bytes]:
    """Run one command; stderr is folded into stdout.

    Non-zero exits are returned, not raised. A command the OS refuses to start
    (ENOEXEC, EACCES, ...) is reported as exit status 1 with the error text.
    """
    try:
        proc = subprocess.run(
            list(cmd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
            **kwargs,
        )
    except OSError as e:
        write_debug(f"Could not start {cmd[0]}: {e}", channel="Debug")
        return 1, os.fsencode(f"{cmd[0]}: {e.strerror or e}\n")
    return proc.returncode, proc.stdout or b""


def _is_batch_file(exe: str) -> bool:
    return sys.platform == "win32" and exe.lower().endswith((".bat", ".cmd"))


def xargs(
    cmd: Sequence[str],
    varargs: Sequence[str],
    *,
    target_concurrency: int = 1,
    max_length: Optional[int] = None,
    **kwargs: Any,
) -> Tuple[int, bytes]:
    """
    A simplified xargs: run `cmd` over `varargs`, split into as many
    invocations as the command-line limit requires.

    - target_concurrency: number of partitions to run at once.
    - max_length: explicit command-line limit. When None the platform limit is
      resolved for this call (see arg_max.platform_max_length).
    - kwargs: passed to subprocess.run for every partition (cwd, env, ...).

    Returns (returncode, output). The return code with the largest magnitude
    wins; output is concatenated in partition order.
    """
    env: Optional[Dict[str, str]] = kwargs.get("env")
    try:
        cmd = resolve_executable(cmd, env=env)
    except ExecutableNotFoundError as e:
        return e.to_output()

    if _is_batch_file(cmd[0]):
        cmd_exe = shutil.which("cmd.exe") or os.environ.get("COMSPEC", "cmd.exe")
        batch_limit = arg_max.batch_file_max_length(cmd_exe)
        max_length = batch_limit if max_length is None else min(max_length, batch_limit)

    partitions = partition(cmd, varargs, target_concurrency, max_length)
    workers = min(len(partitions), max(target_concurrency, 1))
    write_debug(f"{len(varargs)} arg(s) -> {len(partitions)} invocation(s) on {workers} worker(s)", channel="Debug")

    def run_cmd_partition(run_cmd: Tuple[str, ...]) -> Tuple[int, bytes]:
        return run_partition(run_cmd, **kwargs)

    if workers == 1:
        results: List[Tuple[int, bytes]] = [run_cmd_partition(p) for p in partitions]
    else:
        with cf.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="argbatch") as ex:
            results = list(ex.map(run_cmd_partition, partitions))

    retcode = 0
    output = b""
    for proc_retcode, proc_out in results:
        if abs(proc_retcode) > abs(retcode):
            retcode = proc_retcode
        output += proc_out
    return retcode, output
