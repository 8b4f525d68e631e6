"""argbatch: split long argument lists into command lines the OS will accept.

Public API:
- platform_max_length() -> int
- resolve_arg_limit() -> ArgLimit
- partition(cmd, varargs, target_concurrency, max_length=None) -> tuple of commands
- xargs(cmd, varargs, *, target_concurrency=1, max_length=None, **kwargs) -> (returncode, output)

CLI: `argbatch` -> argbatch.cli:main
"""

from .errors import BatchError, ArgumentTooLongError, ExecutableNotFoundError, ConfigError
from .arg_max import ArgLimit, POSIX_ARG_MAX, platform_max_length, resolve_arg_limit
from .partition import command_length, partition
from .runner import target_concurrency, xargs

__all__ = [
    "__version__",
    "BatchError",
    "ArgumentTooLongError",
    "ExecutableNotFoundError",
    "ConfigError",
    "ArgLimit",
    "POSIX_ARG_MAX",
    "platform_max_length",
    "resolve_arg_limit",
    "command_length",
    "partition",
    "target_concurrency",
    "xargs",
]
__version__ = "0.3.1"
