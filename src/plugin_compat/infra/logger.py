# Logging module: unified terminal output for the checker
#
# Main functions:
#   - log_lifecycle(): per-repository start/finish lines and run summaries
#   - log_info(): captured build output, skip notices (only with --info)
#   - log_success() / log_warning() / log_error()
#
# Features:
#   - timestamped lines
#   - colored output via colorama
#   - writes serialized across worker threads

import sys
import threading
from datetime import datetime

import colorama
from colorama import Fore, Style

colorama.init()

LEVEL_LIFECYCLE = "lifecycle"
LEVEL_INFO = "info"

COLOR_LIFECYCLE = Fore.WHITE
COLOR_INFO = Fore.CYAN
COLOR_SUCCESS = Fore.GREEN
COLOR_ERROR = Fore.RED
COLOR_WARNING = Fore.YELLOW

_log_level = LEVEL_LIFECYCLE
_write_lock = threading.Lock()


def set_log_level(level: str) -> None:
    """Switch between ``lifecycle`` (default) and ``info`` output."""
    global _log_level
    if level not in (LEVEL_LIFECYCLE, LEVEL_INFO):
        raise ValueError(f"unknown log level: {level}")
    _log_level = level


def get_log_level() -> str:
    return _log_level


def is_info_enabled() -> bool:
    return _log_level == LEVEL_INFO


def _get_timestamp() -> str:
    """Return the current timestamp"""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _format_message(level: str, color: str, message: str, stream) -> str:
    """Format a log line, colored when the stream is a terminal"""
    timestamp = _get_timestamp()
    if stream.isatty():
        return f"{color}[{level}]{Style.RESET_ALL} [{timestamp}] {message}"
    return f"[{level}] [{timestamp}] {message}"


def _write(level: str, color: str, message: str, stream=None) -> None:
    stream = stream or sys.stdout
    formatted = _format_message(level, color, message, stream)
    with _write_lock:
        print(formatted, file=stream, flush=True)


def log_lifecycle(message: str) -> None:
    """Write a lifecycle line (always shown)"""
    _write("LIFECYCLE", COLOR_LIFECYCLE, message)


def log_info(message: str) -> None:
    """Write an info line (shown only at info level)"""
    if not is_info_enabled():
        return
    _write("INFO", COLOR_INFO, message)


def log_success(message: str) -> None:
    _write("SUCCESS", COLOR_SUCCESS, message)


def log_warning(message: str) -> None:
    _write("WARNING", COLOR_WARNING, message)


def log_error(message: str) -> None:
    """Write an error line (to stderr)"""
    _write("ERROR", COLOR_ERROR, message, stream=sys.stderr)
