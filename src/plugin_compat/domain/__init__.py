"""Domain models and result bookkeeping."""

from .models import CheckOutcome, CheckResult, RepositoryEntry
from .results import DuplicateResultError, ResultBook

__all__ = [
    "CheckOutcome",
    "CheckResult",
    "RepositoryEntry",
    "DuplicateResultError",
    "ResultBook",
]
