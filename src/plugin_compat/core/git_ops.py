# Git operations module: clone a plugin repository and check out the target ref
#
# Main functions:
#   - clone_and_checkout(): clone, look for origin/<ref>, check it out
#   - list_remote_branches(): remote-tracking branch names of a clone
#
# Notes:
#   - a missing ref is an expected outcome, not an error
#   - failures are classified from git's stderr, never retried

import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .process_control import ProcessCanceled, run_tracked
from ..infra.logger import log_error, log_info

REMOTE_NAME = "origin"

# Fail instead of waiting for credentials on a terminal nobody watches.
GIT_ENV_OVERRIDES = {"GIT_TERMINAL_PROMPT": "0"}


class GitCommandError(RuntimeError):
    """A git command exited non-zero, timed out, or could not be started."""

    def __init__(self, message: str, reason: str = "unknown", stderr: str = ""):
        super().__init__(message)
        self.reason = reason
        self.stderr = stderr


def extract_git_failure_reason(stderr_text: str) -> str:
    """Map common git clone/checkout stderr to concise reason tags."""
    text = (stderr_text or "").lower()
    if not text:
        return "unknown"
    if "repository not found" in text or "does not appear to be a git repository" in text:
        return "repo_not_found"
    if "could not resolve host" in text or "failed to connect" in text or "timed out" in text:
        return "network_error"
    if (
        "authentication failed" in text
        or "permission denied" in text
        or "could not read username" in text
    ):
        return "auth_error"
    if "did not match any file(s) known to git" in text or "invalid reference" in text:
        return "ref_missing"
    return "unknown"


def run_git(args: Sequence[str], cwd: Optional[Path] = None, timeout: Optional[float] = None) -> str:
    """Run ``git <args>`` and return its stdout.

    Raises:
        GitCommandError: on non-zero exit, timeout, launch failure, invalid
            arguments or shutdown.
    """
    command = ["git", *args]
    try:
        returncode, stdout, stderr = run_tracked(
            command,
            cwd=str(cwd) if cwd else None,
            timeout=timeout,
            env={**os.environ, **GIT_ENV_OVERRIDES},
        )
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(f"git {args[0]} timed out after {exc.timeout}s", reason="timeout") from exc
    except ProcessCanceled as exc:
        raise GitCommandError(str(exc), reason="canceled") from exc
    except OSError as exc:
        raise GitCommandError(f"failed to run git: {exc}", reason="git_unavailable") from exc
    except ValueError as exc:
        # Popen rejects arguments such as URLs with embedded NUL bytes
        raise GitCommandError(f"invalid git argument: {exc}", reason="invalid_url") from exc

    if returncode != 0:
        stderr = stderr.strip()
        raise GitCommandError(
            f"git {args[0]} exited with {returncode}: {stderr[:200]}",
            reason=extract_git_failure_reason(stderr),
            stderr=stderr,
        )
    return stdout


def list_remote_branches(directory: Path, timeout: Optional[float] = None) -> List[str]:
    """Return remote-tracking branch names such as ``origin/main``."""
    output = run_git(
        ["for-each-ref", "--format=%(refname)", "refs/remotes"],
        cwd=directory,
        timeout=timeout,
    )
    prefix = "refs/remotes/"
    branches = []
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(prefix):
            branches.append(line[len(prefix):])
    return branches


def clone_and_checkout(
    repo_url: str,
    directory: Path,
    ref: str,
    timeout: Optional[float] = None,
) -> Tuple[bool, str]:
    """Clone ``repo_url`` into ``directory`` and check out ``origin/<ref>``.

    Args:
        repo_url: repository URL
        directory: empty working copy directory
        ref: branch name expected on the remote
        timeout: per git command timeout in seconds (None: no limit)

    Returns:
        ``(True, "")`` when the working copy is ready to build, otherwise
        ``(False, reason)``; ``reason`` is ``ref_missing`` when the branch does
        not exist and a failure tag for any git error.
    """
    target_branch = f"{REMOTE_NAME}/{ref}"
    try:
        run_git(["clone", "--quiet", repo_url, str(directory)], timeout=timeout)

        remote_branches = list_remote_branches(directory, timeout=timeout)
        if target_branch not in remote_branches:
            log_info(f"{ref} does not exist for {repo_url}. Skipping the compatibility check!!")
            return False, "ref_missing"

        log_info(f"Checking out {target_branch}")
        run_git(["checkout", "--quiet", target_branch], cwd=directory, timeout=timeout)
        return True, ""

    except GitCommandError as exc:
        log_error(f"Exception occurred during GitHub operations for {repo_url}: [{exc.reason}] {exc}")
        return False, exc.reason
    except Exception as exc:
        log_error(f"Exception occurred during GitHub operations for {repo_url}: {exc!r}")
        return False, "unknown"
