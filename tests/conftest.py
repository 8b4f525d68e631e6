"""Pytest fixtures and configuration for argbatch tests."""
from __future__ import annotations

import errno
import sys
from pathlib import Path

import pytest

# tests/ -> project_root/
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from argbatch import arg_max, debug_utils  # noqa: E402


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch, tmp_path):
    """Keep user config and ARGBATCH_* variables out of every test."""
    for name in ("ARGBATCH_CONFIG", "ARGBATCH_MAX_LENGTH", "ARGBATCH_JOBS", "ARGBATCH_NO_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    debug_utils.set_console_verbosity(debug_utils.DEFAULT_CONSOLE_VERBOSITY)
    debug_utils.set_log_verbosity(debug_utils.DEFAULT_LOG_VERBOSITY)
    debug_utils.disable_file_logging()
    yield
    debug_utils.set_console_verbosity(debug_utils.DEFAULT_CONSOLE_VERBOSITY)
    debug_utils.set_log_verbosity(debug_utils.DEFAULT_LOG_VERBOSITY)
    debug_utils.disable_file_logging()


@pytest.fixture
def posix_platform(monkeypatch):
    """Pretend to be Linux so the sysconf branch is taken."""
    monkeypatch.setattr(arg_max.platform, "system", lambda: "Linux")
    if not hasattr(arg_max.os, "sysconf"):
        monkeypatch.setattr(arg_max.os, "sysconf", lambda name: 2 ** 21, raising=False)


@pytest.fixture
def sysconf_denied(monkeypatch, posix_platform):
    """SC_ARG_MAX query refused the way a seccomp sandbox refuses it."""
    calls = []

    def _denied():
        calls.append("SC_ARG_MAX")
        raise OSError(errno.EPERM, "Operation not permitted")

    monkeypatch.setattr(arg_max, "_query_arg_max", _denied)
    return calls


@pytest.fixture
def sysconf_returns(monkeypatch, posix_platform):
    """Factory: make SC_ARG_MAX report a given value."""
    def _set(value: int):
        monkeypatch.setattr(arg_max, "_query_arg_max", lambda: value)
    return _set


@pytest.fixture
def empty_environ(monkeypatch):
    """Make the environment block size zero so limits are exact."""
    monkeypatch.setattr(arg_max, "environ_size", lambda env=None: 0)


@pytest.fixture
def py_cmd():
    """Command that prints how many arguments it received, one line per run."""
    return [sys.executable, "-c", "import sys; print(len(sys.argv) - 1)"]
