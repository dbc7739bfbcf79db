"""Thread-safe collection of per-repository check results."""

import threading
from typing import Dict, Iterator, List, Optional

from .models import CheckOutcome, CheckResult


class DuplicateResultError(ValueError):
    """Raised when a second result is recorded for the same repository URL."""


class ResultBook:
    """Mapping of repository URL to its one ``CheckResult``.

    Workers record concurrently; every accessor takes the same lock, so a URL
    can never end up in two outcomes.
    """

    def __init__(self) -> None:
        self._results: Dict[str, CheckResult] = {}
        self._lock = threading.Lock()

    def record(self, result: CheckResult) -> None:
        with self._lock:
            if result.url in self._results:
                existing = self._results[result.url].outcome.value
                raise DuplicateResultError(
                    f"{result.url} already recorded as {existing}"
                )
            self._results[result.url] = result

    def record_if_absent(self, result: CheckResult) -> bool:
        """Record ``result`` unless the URL already has one; return whether it was stored."""
        with self._lock:
            if result.url in self._results:
                return False
            self._results[result.url] = result
            return True

    def get(self, url: str) -> Optional[CheckResult]:
        with self._lock:
            return self._results.get(url)

    def results(self) -> List[CheckResult]:
        with self._lock:
            return list(self._results.values())

    def urls_for(self, outcome: CheckOutcome) -> List[str]:
        with self._lock:
            return [url for url, result in self._results.items() if result.outcome is outcome]

    @property
    def compatible(self) -> List[str]:
        return self.urls_for(CheckOutcome.COMPATIBLE)

    @property
    def build_failed(self) -> List[str]:
        return self.urls_for(CheckOutcome.BUILD_FAILED)

    @property
    def ref_missing(self) -> List[str]:
        return self.urls_for(CheckOutcome.REF_MISSING)

    def counts(self) -> Dict[str, int]:
        with self._lock:
            counts = {outcome.value: 0 for outcome in CheckOutcome}
            for result in self._results.values():
                counts[result.outcome.value] += 1
            return counts

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._results

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __iter__(self) -> Iterator[CheckResult]:
        return iter(self.results())
