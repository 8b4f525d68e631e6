from __future__ import annotations

import dataclasses as dc
import os
import pathlib
import typing as t

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .debug_utils import VERBOSITY_LEVELS
from .errors import ConfigError

PathLikeStr = t.Union[str, os.PathLike]
ConfigDict = t.Dict[str, t.Any]

CONFIG_ENV = "ARGBATCH_CONFIG"
MAX_LENGTH_ENV = "ARGBATCH_MAX_LENGTH"
JOBS_ENV = "ARGBATCH_JOBS"

DELIMITERS = ("newline", "null")


@dc.dataclass
class Settings:
    jobs: int | None = None           # None -> runner.target_concurrency()
    max_length: int | None = None     # None -> resolved per call from the platform
    delimiter: str = "newline"
    verbosity: str = "Warning"
    log_file: str | None = None       # diagnostics are also appended here when set
    log_file_verbosity: str = "Debug"
    source: pathlib.Path | None = None


def platform_config_default() -> pathlib.Path:
    """
    Determine the default config path by OS:
      - Windows: %APPDATA%/argbatch/config.toml
      - Others:  $XDG_CONFIG_HOME/argbatch/config.toml or ~/.config/argbatch/config.toml
    """
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
        return pathlib.Path(appdata) / "argbatch" / "config.toml"
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return pathlib.Path(config_home) / "argbatch" / "config.toml"
    return pathlib.Path.home() / ".config" / "argbatch" / "config.toml"


def resolve_config_path(path: PathLikeStr | None) -> tuple[pathlib.Path, bool]:
    """
    Resolve the config path using the standard precedence order
    (explicit path -> ARGBATCH_CONFIG env -> platform default).
    The flag is True when the path was asked for explicitly and so must exist.
    """
    if path:
        return pathlib.Path(path).expanduser(), True
    env = os.environ.get(CONFIG_ENV)
    if env:
        return pathlib.Path(env).expanduser(), True
    return platform_config_default(), False


def _positive_int(value: t.Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a positive integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{key} must be a positive integer, got {value!r}")
    return number


def _parse_config_dict(d: ConfigDict) -> Settings:
    batch = d.get("batch", {})
    log = d.get("log", {})
    if not isinstance(batch, dict) or not isinstance(log, dict):
        raise ConfigError("[batch] and [log] must be tables")

    settings = Settings()
    if "jobs" in batch:
        settings.jobs = _positive_int(batch["jobs"], "batch.jobs")
    if "max_length" in batch:
        settings.max_length = _positive_int(batch["max_length"], "batch.max_length")
    if "delimiter" in batch:
        delimiter = str(batch["delimiter"]).lower()
        if delimiter not in DELIMITERS:
            raise ConfigError(f"batch.delimiter must be one of {DELIMITERS}, got {batch['delimiter']!r}")
        settings.delimiter = delimiter
    if "verbosity" in log:
        level = str(log["verbosity"]).capitalize()
        if level not in VERBOSITY_LEVELS:
            raise ConfigError(f"log.verbosity must be one of {VERBOSITY_LEVELS}, got {log['verbosity']!r}")
        settings.verbosity = level
    if "file" in log:
        settings.log_file = os.path.expanduser(str(log["file"]))
    if "file_verbosity" in log:
        level = str(log["file_verbosity"]).capitalize()
        if level not in VERBOSITY_LEVELS:
            raise ConfigError(f"log.file_verbosity must be one of {VERBOSITY_LEVELS}, got {log['file_verbosity']!r}")
        settings.log_file_verbosity = level
    return settings


def _apply_env_overrides(settings: Settings) -> Settings:
    raw_max = os.environ.get(MAX_LENGTH_ENV)
    if raw_max:
        settings.max_length = _positive_int(raw_max, MAX_LENGTH_ENV)
    raw_jobs = os.environ.get(JOBS_ENV)
    if raw_jobs:
        settings.jobs = _positive_int(raw_jobs, JOBS_ENV)
    return settings


def load_config(path: PathLikeStr | None = None) -> Settings:
    """
    Load configuration in TOML. Search order if path is None:
      1) ENV ARGBATCH_CONFIG
      2) platform default (see platform_config_default); may be absent
    Environment overrides (ARGBATCH_MAX_LENGTH, ARGBATCH_JOBS) apply last.
    """
    candidate, required = resolve_config_path(path)
    if not candidate.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {candidate}")
        return _apply_env_overrides(Settings())

    try:
        with candidate.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {candidate}: {e}") from e

    settings = _parse_config_dict(data)
    settings.source = candidate
    return _apply_env_overrides(settings)
