# Report module
#
# Main functions:
#   - build_report(): summary dict of one run
#   - save_report(): write it as JSON for CI artifacts

import json
from pathlib import Path
from typing import Any, Dict

from ..domain.results import ResultBook
from ..infra.logger import log_info, log_warning


def build_report(results: ResultBook, ref: str, duration: float) -> Dict[str, Any]:
    """Summarize a run; list fields keep the order results were recorded in."""
    return {
        "ref": ref,
        "total": len(results),
        "duration": int(duration),
        "compatible": results.compatible,
        "incompatible": results.build_failed,
        "skipped": results.ref_missing,
        "results": {result.url: result.to_dict() for result in results},
    }


def save_report(report: Dict[str, Any], report_file: Path) -> bool:
    """Write the report as JSON; a write failure is logged, not raised."""
    report_file = Path(report_file)
    try:
        report_file.parent.mkdir(parents=True, exist_ok=True)
        report_file.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        log_warning(f"failed to save report: {report_file} - {e}")
        return False

    log_info(f"Report saved to: {report_file}")
    return True
