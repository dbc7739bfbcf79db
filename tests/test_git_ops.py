import pytest

from conftest import git, make_origin_repo, requires_git
from plugin_compat.core import git_ops
from plugin_compat.core.git_ops import (
    GitCommandError,
    clone_and_checkout,
    extract_git_failure_reason,
    list_remote_branches,
)


def test_extract_git_failure_reason_known_cases():
    assert extract_git_failure_reason("remote: Repository not found.") == "repo_not_found"
    assert extract_git_failure_reason("fatal: Could not resolve host: github.com") == "network_error"
    assert extract_git_failure_reason("fatal: Authentication failed for 'https://x'") == "auth_error"
    assert extract_git_failure_reason("git@github.com: Permission denied (publickey).") == "auth_error"
    assert (
        extract_git_failure_reason("error: pathspec 'origin/2.x' did not match any file(s) known to git")
        == "ref_missing"
    )


def test_extract_git_failure_reason_unknown_and_empty():
    assert extract_git_failure_reason("") == "unknown"
    assert extract_git_failure_reason("something odd happened") == "unknown"


def test_clone_and_checkout_reports_git_errors(monkeypatch, tmp_path):
    def fake_run_git(args, cwd=None, timeout=None):
        raise GitCommandError("git clone exited with 128", reason="network_error")

    monkeypatch.setattr(git_ops, "run_git", fake_run_git)

    assert clone_and_checkout("https://github.com/o/r.git", tmp_path, "main") == (False, "network_error")


@requires_git
def test_clone_and_checkout_existing_ref(tmp_path):
    origin = make_origin_repo(tmp_path / "origin", branches=("main", "2.x"))
    work = tmp_path / "work"
    work.mkdir()

    ready, reason = clone_and_checkout(str(origin), work, "2.x", timeout=60)

    assert (ready, reason) == (True, "")
    assert (work / "gradlew").exists()
    assert "origin/2.x" in list_remote_branches(work)
    head = git("rev-parse", "HEAD", cwd=work).strip()
    assert head == git("rev-parse", "origin/2.x", cwd=work).strip()


@requires_git
def test_clone_and_checkout_missing_ref(tmp_path):
    origin = make_origin_repo(tmp_path / "origin", branches=("main",))
    work = tmp_path / "work"
    work.mkdir()

    assert clone_and_checkout(str(origin), work, "does-not-exist", timeout=60) == (False, "ref_missing")


@requires_git
def test_clone_and_checkout_unreachable_repository(tmp_path):
    work = tmp_path / "work"
    work.mkdir()

    ready, reason = clone_and_checkout(str(tmp_path / "missing-origin"), work, "main", timeout=60)

    assert ready is False
    assert reason != "ref_missing"


@requires_git
def test_run_git_raises_on_failure(tmp_path):
    with pytest.raises(GitCommandError):
        git_ops.run_git(["rev-parse", "HEAD"], cwd=tmp_path)


def test_clone_and_checkout_malformed_url_is_a_git_failure(tmp_path):
    ready, reason = clone_and_checkout("https://github.com/org/bad\x00name.git", tmp_path, "main")

    assert (ready, reason) == (False, "invalid_url")


def test_clone_and_checkout_unexpected_error_is_a_git_failure(monkeypatch, tmp_path):
    def broken_run_git(args, cwd=None, timeout=None):
        raise RuntimeError("listing exploded")

    monkeypatch.setattr(git_ops, "run_git", broken_run_git)

    assert clone_and_checkout("https://github.com/o/r.git", tmp_path, "main") == (False, "unknown")
