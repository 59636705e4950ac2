"""In-memory coordination state shared between workers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MAIN_BRANCH = "main"


class CoordinationConflictError(RuntimeError):
    """Raised when a branch operation's preconditions do not hold."""


@dataclass(slots=True, frozen=True)
class BranchResult:
    success: bool
    message: str

    def raise_for_conflict(self) -> "BranchResult":
        if not self.success:
            raise CoordinationConflictError(self.message)
        return self

    def to_dict(self) -> dict[str, object]:
        return {"status": "success" if self.success else "error", "message": self.message}


class CoordinationStore:
    """Key/value memory plus a nominal branch namespace.

    Branches carry no content; they only let workflows reserve lanes of work.
    """

    def __init__(self) -> None:
        self._memory: dict[str, str] = {}
        self._branches: set[str] = {MAIN_BRANCH}

    def store(self, key: str, value: str) -> None:
        self._memory[key] = value
        logger.debug("Stored coordination value", extra={"key": key})

    def read(self, key: str) -> str | None:
        return self._memory.get(key)

    def list_keys(self) -> list[str]:
        return list(self._memory)

    def create_branch(self, name: str, base: str = MAIN_BRANCH) -> BranchResult:
        if name in self._branches:
            return BranchResult(False, f"Branch '{name}' already exists")
        if base not in self._branches:
            return BranchResult(False, f"Base branch '{base}' does not exist")
        self._branches.add(name)
        logger.info("Created branch", extra={"branch": name, "base": base})
        return BranchResult(True, f"Branch '{name}' created from '{base}'")

    def merge_branch(self, source: str, target: str) -> BranchResult:
        if source not in self._branches:
            return BranchResult(False, f"Source branch '{source}' does not exist")
        if target not in self._branches:
            return BranchResult(False, f"Target branch '{target}' does not exist")
        logger.info("Merged branch", extra={"source": source, "target": target})
        return BranchResult(True, f"Branch '{source}' merged into '{target}'")

    def delete_branch(self, name: str) -> BranchResult:
        if name == MAIN_BRANCH:
            return BranchResult(False, f"Cannot delete '{MAIN_BRANCH}' branch")
        if name not in self._branches:
            return BranchResult(False, f"Branch '{name}' does not exist")
        self._branches.discard(name)
        logger.info("Deleted branch", extra={"branch": name})
        return BranchResult(True, f"Branch '{name}' deleted")

    def list_branches(self) -> list[str]:
        return sorted(self._branches)

    def has_branch(self, name: str) -> bool:
        return name in self._branches


__all__ = ["MAIN_BRANCH", "BranchResult", "CoordinationConflictError", "CoordinationStore"]
