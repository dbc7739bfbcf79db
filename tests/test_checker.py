import random
import threading
import time
from pathlib import Path

import pytest

from conftest import make_origin_repo, requires_git, requires_posix
from plugin_compat.core import checker as checker_module
from plugin_compat.core.build import BuildError, BuildOutput
from plugin_compat.core.checker import CompatibilityChecker
from plugin_compat.core.process_control import request_shutdown
from plugin_compat.domain import CheckOutcome


class FakePipeline:
    """Stands in for git and Gradle; remembers the directories it saw."""

    def __init__(self, missing_ref=(), failing_build=(), git_error=()):
        self.missing_ref = set(missing_ref)
        self.failing_build = set(failing_build)
        self.git_error = set(git_error)
        self.clone_dirs = {}
        self.build_dirs = {}
        self._lock = threading.Lock()

    def clone_and_checkout(self, repo_url, directory, ref, timeout=None):
        assert directory.is_dir()
        with self._lock:
            self.clone_dirs[repo_url] = directory
        if repo_url in self.git_error:
            return False, "network_error"
        if repo_url in self.missing_ref:
            return False, "ref_missing"
        return True, ""

    def run_build(self, build_dir, task="assemble", timeout=None):
        repo_url = self._owner(Path(build_dir))
        with self._lock:
            self.build_dirs[repo_url] = Path(build_dir)
        if repo_url in self.failing_build:
            raise BuildError(f"{task} exited with code 1", reason="exit_code", stdout="out", stderr="boom")
        return BuildOutput(returncode=0, stdout="BUILD SUCCESSFUL", stderr="")

    def _owner(self, build_dir):
        with self._lock:
            items = list(self.clone_dirs.items())
        for url, path in items:
            if build_dir in (path, path / "notifications"):
                return url
        raise AssertionError(f"unknown build dir {build_dir}")


@pytest.fixture
def pipeline(monkeypatch):
    def install(**kwargs):
        fake = FakePipeline(**kwargs)
        monkeypatch.setattr(checker_module, "clone_and_checkout", fake.clone_and_checkout)
        monkeypatch.setattr(checker_module, "run_build", fake.run_build)
        return fake

    return install


def test_each_repository_gets_exactly_one_outcome(pipeline, tmp_path):
    urls = ["https://h/ok.git", "https://h/missing.git", "https://h/broken.git", "https://h/offline.git"]
    fake = pipeline(
        missing_ref={"https://h/missing.git"},
        failing_build={"https://h/broken.git"},
        git_error={"https://h/offline.git"},
    )

    results = CompatibilityChecker(urls, ref="2.x", parallel_tasks=2, work_dir=tmp_path).check_compatibility()

    assert results.compatible == ["https://h/ok.git"]
    assert results.build_failed == ["https://h/broken.git"]
    assert sorted(results.ref_missing) == ["https://h/missing.git", "https://h/offline.git"]
    assert results.get("https://h/offline.git").reason == "network_error"
    assert results.get("https://h/broken.git").reason == "exit_code"
    assert len(results) == len(urls)
    assert set(fake.clone_dirs) == set(urls)


def test_missing_ref_does_not_build(pipeline, tmp_path):
    fake = pipeline(missing_ref={"https://h/a.git"})

    result = CompatibilityChecker(["https://h/a.git"], work_dir=tmp_path).check_repository("https://h/a.git")

    assert result.outcome is CheckOutcome.REF_MISSING
    assert fake.build_dirs == {}


def test_notifications_builds_in_subdirectory(pipeline, tmp_path):
    urls = [
        "https://github.com/opensearch-project/notifications.git",
        "https://github.com/opensearch-project/notifications",
        "https://github.com/opensearch-project/alerting.git",
    ]
    fake = pipeline()

    CompatibilityChecker(urls, work_dir=tmp_path).check_compatibility()

    for url in urls[:2]:
        assert fake.build_dirs[url] == fake.clone_dirs[url] / "notifications"
    assert fake.build_dirs[urls[2]] == fake.clone_dirs[urls[2]]


def test_working_copies_removed_after_success_and_failure(pipeline, tmp_path):
    urls = ["https://h/ok.git", "https://h/broken.git", "https://h/missing.git"]
    fake = pipeline(failing_build={"https://h/broken.git"}, missing_ref={"https://h/missing.git"})

    results = CompatibilityChecker(urls, work_dir=tmp_path).check_compatibility()

    assert results.build_failed == ["https://h/broken.git"]
    assert "https://h/broken.git" not in results.compatible
    for path in fake.clone_dirs.values():
        assert not path.exists()
    assert list(tmp_path.iterdir()) == []


def test_unexpected_exception_is_recorded_as_build_failure(monkeypatch, tmp_path):
    def exploding_clone(repo_url, directory, ref, timeout=None):
        raise RuntimeError("disk full")

    monkeypatch.setattr(checker_module, "clone_and_checkout", exploding_clone)

    results = CompatibilityChecker(["https://h/a.git"], work_dir=tmp_path).check_compatibility()

    assert results.get("https://h/a.git").outcome is CheckOutcome.BUILD_FAILED
    assert results.get("https://h/a.git").reason == "exception"
    assert list(tmp_path.iterdir()) == []


def test_concurrent_checks_classify_every_repository_once(monkeypatch, tmp_path):
    urls = [f"https://h/repo-{n}.git" for n in range(40)]
    outcomes = {}

    def fake_clone(repo_url, directory, ref, timeout=None):
        time.sleep(random.random() / 100)
        ready = not repo_url.endswith(("3.git", "7.git"))
        return ready, "" if ready else "ref_missing"

    def fake_build(build_dir, task="assemble", timeout=None):
        time.sleep(random.random() / 100)
        if random.random() < 0.3:
            raise BuildError("failed", reason="exit_code")
        return BuildOutput(0, "", "")

    monkeypatch.setattr(checker_module, "clone_and_checkout", fake_clone)
    monkeypatch.setattr(checker_module, "run_build", fake_build)

    progress = []
    results = CompatibilityChecker(urls, parallel_tasks=8, work_dir=tmp_path).check_compatibility(
        progress_cb=lambda done, total, ok, failed: progress.append((done, total, ok, failed))
    )

    for result in results:
        outcomes[result.url] = result.outcome
    assert sorted(outcomes) == sorted(urls)
    assert len(results.compatible) + len(results.build_failed) + len(results.ref_missing) == 40
    assert progress[0] == (0, 40, 0, 0)
    assert progress[-1][0] == 40
    assert len(progress) == 41


def test_shutdown_skips_remaining_repositories(pipeline, tmp_path):
    fake = pipeline()
    request_shutdown()

    results = CompatibilityChecker(["https://h/a.git", "https://h/b.git"], work_dir=tmp_path).check_compatibility()

    assert sorted(results.ref_missing) == ["https://h/a.git", "https://h/b.git"]
    assert all(result.reason == "canceled" for result in results)
    assert fake.clone_dirs == {}


def test_parallel_tasks_must_be_positive():
    with pytest.raises(ValueError):
        CompatibilityChecker(["https://h/a.git"], parallel_tasks=0)


@requires_git
@requires_posix
def test_end_to_end_with_local_repositories(tmp_path):
    sources = tmp_path / "sources"
    ok = make_origin_repo(sources / "alerting", branches=("main",))
    broken = make_origin_repo(sources / "sql", branches=("main",), build_exit_code=1)
    no_branch = make_origin_repo(sources / "k-NN", branches=("2.x",))
    notifications = make_origin_repo(sources / "notifications", branches=("main",), build_subdir="notifications")
    work = tmp_path / "work"
    work.mkdir()

    urls = [str(ok), str(broken), str(no_branch), str(notifications)]
    results = CompatibilityChecker(
        urls, ref="main", parallel_tasks=2, clone_timeout=60, build_timeout=60, work_dir=work
    ).check_compatibility()

    assert sorted(results.compatible) == sorted([str(ok), str(notifications)])
    assert results.build_failed == [str(broken)]
    assert results.ref_missing == [str(no_branch)]
    assert list(work.iterdir()) == []


def test_malformed_url_is_skipped_without_build(monkeypatch, tmp_path, capsys):
    built = []
    monkeypatch.setattr(checker_module, "run_build", lambda *args, **kwargs: built.append(args))
    url = "https://github.com/org/bad\x00name.git"

    results = CompatibilityChecker([url], work_dir=tmp_path).check_compatibility()

    assert results.get(url).outcome is CheckOutcome.REF_MISSING
    assert results.get(url).reason == "invalid_url"
    assert results.build_failed == []
    assert built == []
    assert list(tmp_path.iterdir()) == []
    assert "Skipping compatibility check" in capsys.readouterr().out
