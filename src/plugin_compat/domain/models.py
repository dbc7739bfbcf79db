"""Domain data structures."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class CheckOutcome(str, Enum):
    """Classification of one repository after a compatibility run."""

    COMPATIBLE = "compatible"
    BUILD_FAILED = "build_failed"
    # Skipped: the clone failed or the ref does not exist on the remote.
    REF_MISSING = "ref_missing"


@dataclass(frozen=True)
class RepositoryEntry:
    """A plugin repository from the catalog or an override list."""

    name: str
    url: str


@dataclass(frozen=True)
class CheckResult:
    """The single result recorded for a repository URL in one run."""

    url: str
    outcome: CheckOutcome
    reason: str = ""
    duration: float = 0.0

    @property
    def skipped(self) -> bool:
        return self.outcome is CheckOutcome.REF_MISSING

    def to_dict(self) -> Dict[str, object]:
        return {
            "url": self.url,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "duration": round(self.duration, 3),
        }
