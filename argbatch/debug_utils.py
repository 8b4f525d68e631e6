import os
import platform
import sys
import threading

# --- Configuration ---
VERBOSITY_LEVELS = ["Verbose", "Debug", "Information", "Warning", "Error", "Critical"]
DEFAULT_CONSOLE_VERBOSITY = "Warning"  # library stays quiet unless asked
DEFAULT_LOG_VERBOSITY = "Debug"

# --- Global Variables ---
_console_verbosity_level = DEFAULT_CONSOLE_VERBOSITY
_log_verbosity_level = DEFAULT_LOG_VERBOSITY
_log_file_path = None              # Path of the active log file, None when disabled
_write_lock = threading.Lock()     # runner threads may log concurrently


# --- Utility Functions ---
def set_console_verbosity(level: str = DEFAULT_CONSOLE_VERBOSITY) -> None:
    """Set the global verbosity level for console output."""
    global _console_verbosity_level
    _console_verbosity_level = _validate_verbosity_level(level, "console")


def get_console_verbosity() -> str:
    return _console_verbosity_level


def set_log_verbosity(level: str = DEFAULT_LOG_VERBOSITY) -> None:
    """Set the global verbosity level for file logging."""
    global _log_verbosity_level
    _log_verbosity_level = _validate_verbosity_level(level, "log")


def enable_file_logging(path: str) -> str:
    """Append diagnostics to `path` as well as the console. Returns the expanded path."""
    global _log_file_path
    expanded = os.path.expanduser(path)
    parent = os.path.dirname(expanded)
    if parent:
        os.makedirs(parent, exist_ok=True)
    _log_file_path = expanded
    return expanded


def disable_file_logging() -> None:
    global _log_file_path
    _log_file_path = None


def _validate_verbosity_level(level: str, target_type: str) -> str:
    """Validate verbosity level and raise ValueError if invalid."""
    level_capitalized = str(level).capitalize()
    if level_capitalized not in VERBOSITY_LEVELS:
        raise ValueError(f"Invalid {target_type} verbosity level: '{level}'. Must be one of {VERBOSITY_LEVELS}")
    return level_capitalized


def _is_at_verbosity_level(channel: str, verbosity_level: str) -> bool:
    """Check if a channel is at or above the given verbosity level."""
    return VERBOSITY_LEVELS.index(channel) >= VERBOSITY_LEVELS.index(verbosity_level)


def write_debug(message: str = "", channel: str = "Debug", condition: bool = True,
                output_stream: str = "stderr") -> None:
    """
    Write a diagnostic message to the console and, if enabled, to the log file.
    Parameters:
      - message: The diagnostic message.
      - channel: One of ("Verbose", "Debug", "Information", "Warning", "Error", "Critical").
      - condition: If False, the message will not be processed.
      - output_stream: "stdout" or "stderr". Defaults to stderr so batched
        child output on stdout stays clean.
    """
    if not condition:
        return

    channel_cap = _validate_verbosity_level(channel, "channel")

    color_map = {
        "Error": "\033[91m", "Warning": "\033[93m", "Verbose": "\033[90m",
        "Information": "\033[96m", "Debug": "\033[92m", "Critical": "\033[95m"
    }
    reset_color = "\033[0m"
    stream = sys.stdout if output_stream.lower() == "stdout" else sys.stderr
    supports_color = stream.isatty() and platform.system() != "Windows"
    color = color_map[channel_cap] if supports_color else ""
    formatted_message = f"{color}[{channel_cap}]{reset_color} {message}" if color else f"[{channel_cap}] {message}"

    with _write_lock:
        if _is_at_verbosity_level(channel_cap, _console_verbosity_level):
            print(formatted_message, file=stream)

        if _log_file_path and _is_at_verbosity_level(channel_cap, _log_verbosity_level):
            try:
                with open(_log_file_path, "a", encoding="utf-8") as log_file:
                    log_file.write(f"[{channel_cap}] {message}\n")
            except OSError as e:
                print(f"[Error] Failed to write to log file {_log_file_path}: {e}", file=sys.stderr)
