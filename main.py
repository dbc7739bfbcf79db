#!/usr/bin/env python3
# Plugin compatibility checker: build every plugin repository against a branch
#
# Main features:
#   - read the plugin catalog (or a comma-separated URL override)
#   - clone each repository and check out origin/<ref>
#   - run the Gradle build (assemble) in parallel on a bounded worker pool
#   - report compatible / incompatible / skipped repositories
#
# Flow:
#   1. parse command line arguments
#   2. resolve the repository list
#   3. check every repository
#   4. print the summary (and optionally write a JSON report)
#
# Exit code is 0 whenever the run completes, however many repositories are
# incompatible; 1 on configuration errors.

import signal
import sys
import time
from typing import Any, Dict, List, Optional

from plugin_compat.application.execution import run_compatibility_check
from plugin_compat.args import parse_args
from plugin_compat.core.catalog import ConfigError, load_catalog
from plugin_compat.core.process_control import request_shutdown
from plugin_compat.infra.logger import (
    LEVEL_INFO,
    log_error,
    log_info,
    log_lifecycle,
    log_success,
    log_warning,
    set_log_level,
)


def print_summary(report: Dict[str, Any]) -> None:
    """Print the final statistics

    Args:
        report: report dict returned by run_compatibility_check()
    """
    duration = report.get("duration", 0)
    minutes, seconds = divmod(duration, 60)
    hours, minutes = divmod(minutes, 60)

    print()
    log_lifecycle("========== Compatibility check finished ==========")
    log_lifecycle(f"Ref: {report['ref']}")
    log_lifecycle(f"Repositories: {report['total']}")
    log_success(f"Compatible: {len(report['compatible'])}")

    incompatible = len(report["incompatible"])
    if incompatible:
        log_error(f"Incompatible: {incompatible}")
    else:
        log_lifecycle(f"Incompatible: {incompatible}")

    skipped = len(report["skipped"])
    if skipped:
        log_warning(f"Skipped: {skipped}")
    else:
        log_lifecycle(f"Skipped: {skipped}")

    log_lifecycle(f"Duration: {hours}h {minutes}m {seconds}s")
    log_lifecycle("==================================================")


def _handle_signal(signum, _frame) -> None:
    log_warning(f"received signal {signum}, canceling running checks")
    request_shutdown()


def list_projects(args) -> int:
    try:
        entries = load_catalog(args.catalog)
    except ConfigError as exc:
        log_error(str(exc))
        return 1

    for entry in entries:
        print(f"{entry.name}\t{entry.url}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point

    Returns:
        exit code (0 run completed, 1 configuration error)
    """
    args = parse_args(argv)

    if args.command == "list":
        return list_projects(args)

    if args.info:
        set_log_level(LEVEL_INFO)

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    log_info(f"Plugin compatibility check started at {time.strftime('%Y-%m-%d %H:%M:%S')}")

    ok, report, error = run_compatibility_check(
        repository_urls=args.repository_urls,
        ref=args.ref,
        catalog_file=args.catalog,
        projects=args.projects,
        parallel_tasks=args.tasks,
        build_task=args.build_task,
        clone_timeout=args.clone_timeout,
        build_timeout=args.build_timeout,
        report_file=args.report,
        progress_cb=lambda done, total, compatible, failed: log_info(
            f"Progress {done}/{total}, compatible {compatible}, not compatible {failed}"
        ),
    )
    if not ok:
        log_error(f"Compatibility check not started: {error}")
        return 1

    print_summary(report)
    return 0


if __name__ == '__main__':
    sys.exit(main())
