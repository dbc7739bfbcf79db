"""Application services orchestrating domain and core capabilities."""

from .execution import run_compatibility_check

__all__ = [
    "run_compatibility_check",
]
