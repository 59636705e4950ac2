"""Shared memory and branch coordination exports."""

from .store import MAIN_BRANCH, BranchResult, CoordinationConflictError, CoordinationStore

__all__ = [
    "MAIN_BRANCH",
    "BranchResult",
    "CoordinationConflictError",
    "CoordinationStore",
]
