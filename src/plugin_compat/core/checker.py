# Compatibility checker: clone, check out and build every plugin repository
#
# Main functions:
#   - CompatibilityChecker.check_repository(): one repository, one result
#   - CompatibilityChecker.check_compatibility(): all repositories on a
#     bounded worker pool, then the summary
#
# Every repository URL ends up with exactly one outcome:
#   - COMPATIBLE: the build succeeded against the ref
#   - BUILD_FAILED: the build exited non-zero or could not run
#   - REF_MISSING: clone/checkout failed or the ref is absent (skipped)

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional, Sequence

from .build import DEFAULT_BUILD_TASK, BuildError, resolve_build_dir, run_build
from .git_ops import clone_and_checkout
from .process_control import is_shutdown_requested
from .workspace import working_copy
from ..domain.models import CheckOutcome, CheckResult
from ..domain.results import ResultBook
from ..infra.logger import log_error, log_info, log_lifecycle, log_warning

DEFAULT_REF = "main"
DEFAULT_PARALLEL_TASKS = 4
DEFAULT_CLONE_TIMEOUT = 600
DEFAULT_BUILD_TIMEOUT = 3600

ProgressCallback = Callable[[int, int, int, int], None]


class CompatibilityChecker:
    """Checks a list of plugin repositories against one ref."""

    def __init__(
        self,
        repository_urls: Sequence[str],
        ref: str = DEFAULT_REF,
        parallel_tasks: int = DEFAULT_PARALLEL_TASKS,
        build_task: str = DEFAULT_BUILD_TASK,
        clone_timeout: Optional[float] = DEFAULT_CLONE_TIMEOUT,
        build_timeout: Optional[float] = DEFAULT_BUILD_TIMEOUT,
        work_dir: Optional[Path] = None,
    ):
        if parallel_tasks < 1:
            raise ValueError(f"parallel_tasks must be >= 1: {parallel_tasks}")
        self.repository_urls = list(repository_urls)
        self.ref = ref
        self.parallel_tasks = parallel_tasks
        self.build_task = build_task
        self.clone_timeout = clone_timeout or None
        self.build_timeout = build_timeout or None
        self.work_dir = work_dir
        self.results = ResultBook()

    def check_repository(self, repo_url: str) -> CheckResult:
        """Clone, check out and build one repository, and record its outcome."""
        log_lifecycle(f"Checking compatibility for: {repo_url} with ref: {self.ref}")
        start = time.monotonic()

        if is_shutdown_requested():
            log_lifecycle(f"Skipping compatibility check for {repo_url}")
            result = CheckResult(repo_url, CheckOutcome.REF_MISSING, "canceled")
            self.results.record(result)
            return result

        stdout = ""
        stderr = ""
        skipped = False
        with working_copy(self.work_dir) as clone_dir:
            try:
                ready, reason = clone_and_checkout(
                    repo_url, clone_dir, self.ref, timeout=self.clone_timeout
                )
                if not ready:
                    skipped = True
                    outcome = CheckOutcome.REF_MISSING
                else:
                    build_dir = resolve_build_dir(clone_dir, repo_url)
                    try:
                        output = run_build(build_dir, self.build_task, timeout=self.build_timeout)
                        stdout, stderr = output.stdout, output.stderr
                        outcome, reason = CheckOutcome.COMPATIBLE, ""
                    except BuildError as exc:
                        stdout, stderr = exc.stdout, exc.stderr
                        log_info(f"Gradle {self.build_task} failed for {repo_url}: {exc}")
                        outcome, reason = CheckOutcome.BUILD_FAILED, exc.reason
            finally:
                if skipped:
                    log_lifecycle(f"Skipping compatibility check for {repo_url}")
                else:
                    log_lifecycle(f"Finished compatibility check for {repo_url}")
                    log_info(f"Standard output for {repo_url} build:\n\n{stdout}")
                    log_error(f"Error output for {repo_url} build:\n\n{stderr}")

        result = CheckResult(repo_url, outcome, reason, time.monotonic() - start)
        self.results.record(result)
        return result

    def check_compatibility(self, progress_cb: Optional[ProgressCallback] = None) -> ResultBook:
        """Check every repository and log the summary.

        Returns:
            the result book, holding exactly one result per repository URL
        """
        total = len(self.repository_urls)
        if total == 0:
            log_warning("no repositories to check")
            return self.results

        log_info(f"Checking {total} repositories with ref {self.ref}, parallel tasks: {self.parallel_tasks}")

        done = 0
        if progress_cb:
            progress_cb(0, total, 0, 0)

        with ThreadPoolExecutor(max_workers=self.parallel_tasks) as executor:
            future_to_url = {
                executor.submit(self.check_repository, repo_url): repo_url
                for repo_url in self.repository_urls
            }

            for future in as_completed(future_to_url):
                repo_url = future_to_url[future]
                try:
                    future.result()
                except Exception as exc:
                    log_error(f"Compatibility check crashed for {repo_url}: {exc}")
                    self.results.record_if_absent(
                        CheckResult(repo_url, CheckOutcome.BUILD_FAILED, "exception")
                    )

                done += 1
                if progress_cb:
                    compatible = len(self.results.compatible)
                    progress_cb(done, total, compatible, done - compatible)

        self.log_summary()
        return self.results

    def log_summary(self) -> None:
        failed = self.results.build_failed
        if failed:
            log_lifecycle(f"Incompatible components: {failed}")
        git_failed = self.results.ref_missing
        if git_failed:
            log_lifecycle(f"Components skipped due to git failures: {git_failed}")
        compatible = self.results.compatible
        if compatible:
            log_lifecycle(f"Compatible components: {compatible}")
