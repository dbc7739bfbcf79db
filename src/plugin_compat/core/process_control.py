"""Process control helpers for git/build subprocesses, timeouts and shutdown."""

import os
import platform
import signal
import subprocess
import threading
from typing import Any, Dict, Optional, Sequence, Set, Tuple


IS_WINDOWS = platform.system() == "Windows"

_active_processes: Set[subprocess.Popen] = set()
_active_processes_lock = threading.Lock()
_shutdown_event = threading.Event()


class ProcessCanceled(RuntimeError):
    """Raised when a tracked process ended because shutdown was requested."""


def background_subprocess_kwargs() -> Dict[str, Any]:
    """Return subprocess kwargs that hide console windows on Windows and
    put the child in its own process group elsewhere."""
    if not IS_WINDOWS:
        return {"start_new_session": True}

    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return {
        "startupinfo": startupinfo,
        "creationflags": subprocess.CREATE_NO_WINDOW,
    }


def start_tracked_process(command, **kwargs) -> subprocess.Popen:
    """Start a subprocess in background mode and track it for shutdown cleanup."""
    popen_kwargs = dict(kwargs)
    for key, value in background_subprocess_kwargs().items():
        popen_kwargs.setdefault(key, value)

    process = subprocess.Popen(command, **popen_kwargs)
    with _active_processes_lock:
        _active_processes.add(process)
    return process


def untrack_process(process: subprocess.Popen) -> None:
    """Remove process from tracked set."""
    with _active_processes_lock:
        _active_processes.discard(process)


def terminate_process(process: subprocess.Popen, timeout: float = 5.0) -> None:
    """Terminate a process and its children best-effort."""
    if process.poll() is not None:
        return

    try:
        if IS_WINDOWS:
            subprocess.run(
                ["taskkill", "/F", "/T", "/PID", str(process.pid)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
                **background_subprocess_kwargs(),
            )
        else:
            os.killpg(process.pid, signal.SIGTERM)
    except OSError:
        process.terminate()

    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        try:
            if IS_WINDOWS:
                process.kill()
            else:
                os.killpg(process.pid, signal.SIGKILL)
        except OSError:
            process.kill()


def run_tracked(
    command: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
) -> Tuple[int, str, str]:
    """Run a command to completion and return ``(returncode, stdout, stderr)``.

    Raises:
        subprocess.TimeoutExpired: the command outlived ``timeout`` and was killed.
        ProcessCanceled: shutdown was requested while it ran.
        OSError: the command could not be launched.
    """
    if is_shutdown_requested():
        raise ProcessCanceled(f"canceled before start: {command[0]}")

    process = start_tracked_process(
        list(command),
        cwd=cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    try:
        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            terminate_process(process)
            stdout, stderr = process.communicate()
            raise subprocess.TimeoutExpired(exc.cmd, exc.timeout, output=stdout, stderr=stderr) from None
    finally:
        untrack_process(process)

    if is_shutdown_requested():
        terminate_process(process)
        raise ProcessCanceled(f"canceled: {command[0]}")

    return process.returncode, stdout or "", stderr or ""


def terminate_all_tracked_processes() -> None:
    """Terminate all tracked subprocesses best-effort."""
    with _active_processes_lock:
        processes = list(_active_processes)

    for process in processes:
        terminate_process(process)
        untrack_process(process)


def request_shutdown() -> None:
    """Signal shutdown and terminate running tracked subprocesses."""
    _shutdown_event.set()
    terminate_all_tracked_processes()


def clear_shutdown_request() -> None:
    """Clear shutdown signal before a new run."""
    _shutdown_event.clear()


def is_shutdown_requested() -> bool:
    """Whether a shutdown of running checks was requested."""
    return _shutdown_event.is_set()
