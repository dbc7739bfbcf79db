"""Build step: run a plugin's Gradle wrapper inside its working copy."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .process_control import IS_WINDOWS, ProcessCanceled, run_tracked

DEFAULT_BUILD_TASK = "assemble"

# Repositories whose buildable project sits in a subdirectory of the clone.
NESTED_PROJECT_SUFFIXES = ("notifications", "notifications.git")
NESTED_PROJECT_DIR = "notifications"


@dataclass(frozen=True)
class BuildOutput:
    """Captured result of one build invocation."""

    returncode: int
    stdout: str
    stderr: str


class BuildError(RuntimeError):
    """The build exited non-zero, timed out, was canceled or failed to launch."""

    def __init__(self, message: str, reason: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.reason = reason
        self.stdout = stdout
        self.stderr = stderr


def build_launcher(windows: Optional[bool] = None) -> str:
    """Name of the Gradle wrapper for the host OS."""
    if windows is None:
        windows = IS_WINDOWS
    return "gradlew.bat" if windows else "gradlew"


def resolve_build_dir(clone_dir: Path, repo_url: str) -> Path:
    """Return the directory the build runs from.

    The notifications repository keeps its Gradle project in a
    ``notifications`` subdirectory; every other repository builds from the
    clone root.
    """
    if str(repo_url).endswith(NESTED_PROJECT_SUFFIXES):
        return Path(clone_dir) / NESTED_PROJECT_DIR
    return Path(clone_dir)


def run_build(
    build_dir: Path,
    task: str = DEFAULT_BUILD_TASK,
    timeout: Optional[float] = None,
) -> BuildOutput:
    """Run ``<build_dir>/gradlew <task>`` with ``build_dir`` as working directory.

    Raises:
        BuildError: on any failure; captured output is attached.
    """
    build_dir = Path(build_dir)
    command = [str(build_dir / build_launcher()), task]

    try:
        returncode, stdout, stderr = run_tracked(command, cwd=str(build_dir), timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise BuildError(
            f"{task} timed out after {exc.timeout}s",
            reason="timeout",
            stdout=_as_text(exc.output),
            stderr=_as_text(exc.stderr),
        ) from exc
    except ProcessCanceled as exc:
        raise BuildError(str(exc), reason="canceled") from exc
    except OSError as exc:
        raise BuildError(f"failed to launch {command[0]}: {exc}", reason="launch_error") from exc

    if returncode != 0:
        raise BuildError(
            f"{task} exited with code {returncode}",
            reason="exit_code",
            stdout=stdout,
            stderr=stderr,
        )
    return BuildOutput(returncode=returncode, stdout=stdout, stderr=stderr)


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
