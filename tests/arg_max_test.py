from __future__ import annotations

import errno
import importlib
import inspect

import pytest

from argbatch import arg_max, debug_utils
from argbatch.arg_max import (
    POSIX_ARG_MAX,
    PRACTICAL_MAX_LENGTH,
    WINDOWS_MAX_LENGTH,
    batch_file_max_length,
    environ_size,
    platform_max_length,
    resolve_arg_limit,
)


def test_platform_max_length_real_platform_is_positive():
    value = platform_max_length()
    assert isinstance(value, int)
    assert value >= POSIX_ARG_MAX


def test_denied_query_returns_floor(sysconf_denied):
    assert platform_max_length() == POSIX_ARG_MAX
    assert sysconf_denied == ["SC_ARG_MAX"]


def test_denied_query_is_retried_each_call(sysconf_denied):
    platform_max_length()
    platform_max_length()
    assert len(sysconf_denied) == 2


def test_denied_os_sysconf_itself_is_absorbed(monkeypatch, posix_platform):
    def _denied(name):
        raise OSError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(arg_max.os, "sysconf", _denied, raising=False)
    limit = resolve_arg_limit()
    assert limit.value == POSIX_ARG_MAX
    assert limit.source == "fallback"
    assert limit.raw is None


def test_unknown_sysconf_name_is_absorbed(monkeypatch, posix_platform):
    def _unknown(name):
        raise ValueError("unrecognized configuration name")

    monkeypatch.setattr(arg_max.os, "sysconf", _unknown, raising=False)
    assert platform_max_length() == POSIX_ARG_MAX


def test_fallback_is_silent_by_default(sysconf_denied, capsys):
    platform_max_length()
    out, err = capsys.readouterr()
    assert out == ""
    assert err == ""


def test_fallback_reported_on_verbose_channel(sysconf_denied, capsys):
    debug_utils.set_console_verbosity("Verbose")
    platform_max_length()
    err = capsys.readouterr().err
    assert "[Verbose] SC_ARG_MAX query failed" in err


@pytest.mark.parametrize(
    "reported, expected",
    [
        (2 ** 21, PRACTICAL_MAX_LENGTH),          # typical Linux: clamped to the ceiling
        (2 ** 16, 2 ** 16 - 2048),                # small but usable: headroom removed
        (POSIX_ARG_MAX, POSIX_ARG_MAX),           # minimum system: never below floor
        (100, POSIX_ARG_MAX),                     # nonsense value: still the floor
    ],
)
def test_successful_query_is_derived_and_clamped(sysconf_returns, empty_environ, reported, expected):
    sysconf_returns(reported)
    limit = resolve_arg_limit()
    assert limit.value == expected
    assert limit.raw == reported
    assert limit.source == "sysconf"


def test_environment_size_is_subtracted(sysconf_returns, monkeypatch):
    sysconf_returns(2 ** 16)
    monkeypatch.setattr(arg_max, "environ_size", lambda env=None: 1000)
    limit = resolve_arg_limit()
    assert limit.value == 2 ** 16 - 2048 - 1000
    assert limit.environ_size == 1000


def test_successful_query_is_deterministic(sysconf_returns, empty_environ):
    sysconf_returns(50000)
    assert platform_max_length() == platform_max_length() == 50000 - 2048


def test_windows_uses_fixed_limit(monkeypatch, sysconf_denied):
    monkeypatch.setattr(arg_max.platform, "system", lambda: "Windows")
    limit = resolve_arg_limit()
    assert limit.value == WINDOWS_MAX_LENGTH == 2 ** 15 - 2048
    assert limit.source == "windows"
    assert sysconf_denied == []


def test_platform_without_sysconf_uses_floor(monkeypatch):
    monkeypatch.setattr(arg_max.platform, "system", lambda: "Plan9")
    monkeypatch.delattr(arg_max.os, "sysconf", raising=False)
    limit = resolve_arg_limit()
    assert limit.value == POSIX_ARG_MAX
    assert limit.source == "fallback"


def test_environ_size_counts_pointers_and_strings():
    assert environ_size({}) == 0
    assert environ_size({"A": "1"}) == 8 + 1 + 1 + 2
    assert environ_size({b"PATH": b"/bin", b"X": b""}) == 16 + (4 + 4 + 2) + (1 + 0 + 2)


def test_batch_file_limit():
    assert batch_file_max_length("C:\\Windows\\System32\\cmd.exe") == 8192 - 27 - 4 - 1024


def test_module_import_does_not_query(sysconf_denied):
    importlib.reload(importlib.import_module("argbatch.runner"))
    assert sysconf_denied == []


def test_hosting_modules_import_while_query_fails(monkeypatch, posix_platform):
    def _denied(name):
        raise OSError(errno.EPERM, "Operation not permitted")

    monkeypatch.setattr(arg_max.os, "sysconf", _denied, raising=False)
    # argbatch.partition on the package is the re-exported function, so go through import_module
    partition_mod = importlib.reload(importlib.import_module("argbatch.partition"))
    runner = importlib.reload(importlib.import_module("argbatch.runner"))

    assert inspect.signature(runner.xargs).parameters["max_length"].default is None
    assert inspect.signature(partition_mod.partition).parameters["max_length"].default is None
