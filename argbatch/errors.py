from __future__ import annotations

import os


class BatchError(RuntimeError):
    pass


class ArgumentTooLongError(BatchError):
    """A single argument does not fit in one command line, even on its own."""


class ExecutableNotFoundError(BatchError):
    def to_output(self) -> tuple[int, bytes]:
        return 1, os.fsencode(self.args[0])


class ConfigError(BatchError):
    pass
