"""Application service running a full compatibility check."""

import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.build import DEFAULT_BUILD_TASK
from ..core.catalog import resolve_repositories
from ..core.checker import (
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_CLONE_TIMEOUT,
    DEFAULT_PARALLEL_TASKS,
    DEFAULT_REF,
    CompatibilityChecker,
    ProgressCallback,
)
from ..core.process_control import clear_shutdown_request
from ..core.report import build_report, save_report
from ..infra.logger import log_error


def run_compatibility_check(
    repository_urls: Optional[str] = None,
    ref: str = DEFAULT_REF,
    catalog_file: Optional[Path] = None,
    projects: Optional[Sequence[str]] = None,
    parallel_tasks: int = DEFAULT_PARALLEL_TASKS,
    build_task: str = DEFAULT_BUILD_TASK,
    clone_timeout: Optional[float] = DEFAULT_CLONE_TIMEOUT,
    build_timeout: Optional[float] = DEFAULT_BUILD_TIMEOUT,
    report_file: Optional[Path] = None,
    progress_cb: Optional[ProgressCallback] = None,
) -> Tuple[bool, Dict[str, Any], str]:
    """Resolve configuration, check every repository, and summarize.

    Returns:
        ``(ok, report, error)``; ``ok`` is False only for configuration errors,
        incompatible repositories are part of the report.
    """
    try:
        clear_shutdown_request()
        start_time = time.time()

        entries = resolve_repositories(repository_urls, catalog_file, projects)
        checker = CompatibilityChecker(
            [entry.url for entry in entries],
            ref=ref,
            parallel_tasks=parallel_tasks,
            build_task=build_task,
            clone_timeout=clone_timeout,
            build_timeout=build_timeout,
        )
    except ValueError as exc:
        log_error(str(exc))
        return False, {}, str(exc)

    results = checker.check_compatibility(progress_cb=progress_cb)
    report = build_report(results, ref, time.time() - start_time)

    if report_file:
        save_report(report, report_file)
        report["report_file"] = str(report_file)

    return True, report, ""
