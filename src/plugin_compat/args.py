# Command line argument module
#
# Main functions:
#   - parse_args(): parse the command line (``check`` is the default command)
#   - validate_positive_int() / validate_timeout(): option validation
#
# Environment overrides:
#   REPOSITORY_URLS  comma-separated repository URLs (replaces the catalog)
#   REF              branch to check out

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from .core.build import DEFAULT_BUILD_TASK
from .core.checker import (
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_CLONE_TIMEOUT,
    DEFAULT_PARALLEL_TASKS,
    DEFAULT_REF,
)

COMMANDS = ("check", "list")


def validate_positive_int(value: str) -> int:
    """Validate an integer >= 1"""
    try:
        num = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be an integer: {value}")
    if num < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer >= 1: {value}")
    return num


def validate_timeout(value: str) -> int:
    """Validate a timeout in seconds; 0 disables it"""
    try:
        num = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be an integer: {value}")
    if num < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0: {value}")
    return num


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plugin-compat-check",
        description="Check which plugin repositories build against a branch",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s                                  # check every catalog project against main
  %(prog)s check --ref 2.x -t 2              # branch 2.x, two repositories at a time
  %(prog)s check --project alerting --project sql
  %(prog)s check --repository-urls https://github.com/org/a.git,https://github.com/org/b.git
  %(prog)s list                              # show the catalog

catalog file format (JSON):
  {"projects": {"alerting": "git@github.com:opensearch-project/alerting.git"}}
        """,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    check_parser = subparsers.add_parser(
        "check",
        help="clone, check out and build each repository (default)",
        description="Clone each repository, check out origin/<ref> and run its Gradle build",
    )
    _add_catalog_arguments(check_parser)
    check_parser.add_argument(
        "--repository-urls",
        default=os.environ.get("REPOSITORY_URLS"),
        metavar="URLS",
        help="comma-separated repository URLs replacing the catalog (env: REPOSITORY_URLS)",
    )
    check_parser.add_argument(
        "--project",
        dest="projects",
        action="append",
        default=[],
        metavar="NAME",
        help="only check this catalog project (repeatable)",
    )
    check_parser.add_argument(
        "--ref",
        default=os.environ.get("REF") or DEFAULT_REF,
        help=f"branch to check out (env: REF, default: {DEFAULT_REF})",
    )
    check_parser.add_argument(
        "-t", "--tasks",
        type=validate_positive_int,
        default=DEFAULT_PARALLEL_TASKS,
        metavar="NUM",
        help=f"repositories checked at the same time (default: {DEFAULT_PARALLEL_TASKS})",
    )
    check_parser.add_argument(
        "--task",
        dest="build_task",
        default=DEFAULT_BUILD_TASK,
        help=f"Gradle task to run (default: {DEFAULT_BUILD_TASK})",
    )
    check_parser.add_argument(
        "--clone-timeout",
        type=validate_timeout,
        default=DEFAULT_CLONE_TIMEOUT,
        metavar="SECONDS",
        help=f"timeout per git command, 0 for none (default: {DEFAULT_CLONE_TIMEOUT})",
    )
    check_parser.add_argument(
        "--build-timeout",
        type=validate_timeout,
        default=DEFAULT_BUILD_TIMEOUT,
        metavar="SECONDS",
        help=f"timeout per build, 0 for none (default: {DEFAULT_BUILD_TIMEOUT})",
    )
    check_parser.add_argument(
        "--report",
        type=Path,
        default=None,
        metavar="FILE",
        help="write a JSON report of the run",
    )
    check_parser.add_argument(
        "--info",
        action="store_true",
        help="show info-level output (build stdout, git notices)",
    )

    list_parser = subparsers.add_parser("list", help="list catalog projects")
    _add_catalog_arguments(list_parser)

    return parser


def _add_catalog_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        metavar="FILE",
        help="catalog JSON file (default: bundled catalog)",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse arguments; without a command, ``check`` is assumed"""
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help")):
        argv = ["check", *argv]

    return parser.parse_args(argv)
