from pathlib import Path
import shutil
import subprocess
import sys

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
requires_posix = pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX shell scripts")


@pytest.fixture(autouse=True)
def _clear_shutdown_flag():
    from plugin_compat.core.process_control import clear_shutdown_request

    clear_shutdown_request()
    yield
    clear_shutdown_request()


@pytest.fixture(autouse=True)
def _restore_log_level():
    from plugin_compat.infra import logger

    level = logger.get_log_level()
    yield
    logger.set_log_level(level)


def write_gradlew(directory: Path, exit_code: int = 0, stdout: str = "BUILD OK", stderr: str = "") -> Path:
    """Write an executable fake Gradle wrapper into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    script = directory / "gradlew"
    lines = ["#!/bin/sh", f'echo "{stdout} $1"']
    if stderr:
        lines.append(f'echo "{stderr}" >&2')
    lines.append(f"exit {exit_code}")
    script.write_text("\n".join(lines) + "\n", encoding="utf-8")
    script.chmod(0o755)
    return script


def git(*args, cwd: Path) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Compat Test", "-c", "user.email=compat@example.com", *args],
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def make_origin_repo(path: Path, branches=("main",), build_exit_code: int = 0, build_subdir: str = "") -> Path:
    """Create a local repository usable as a clone source.

    Each branch gets a fake Gradle wrapper (in ``build_subdir`` when given).
    """
    path.mkdir(parents=True)
    git("init", "-q", cwd=path)
    git("symbolic-ref", "HEAD", f"refs/heads/{branches[0]}", cwd=path)
    write_gradlew(path / build_subdir if build_subdir else path, exit_code=build_exit_code)
    git("add", "-A", cwd=path)
    git("commit", "-q", "-m", "initial", cwd=path)
    for branch in branches[1:]:
        git("branch", branch, cwd=path)
    return path
