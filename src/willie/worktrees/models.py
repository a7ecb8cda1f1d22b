"""Data models for worktree lifecycle operations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from ..errors import UsageError

_FORBIDDEN = re.compile(r"[\s~^:?*\[\\/]")


@dataclass(slots=True)
class Worktree:
    task_id: str
    base_branch: str
    path: Path

    @property
    def branch(self) -> str:
        return self.task_id


@dataclass(slots=True)
class RemoveResult:
    task_id: str
    path: Path
    branch_deleted: bool = False
    branch_error: str | None = None


@dataclass(slots=True)
class CleanResult:
    task_id: str
    path: Path
    ok: bool
    message: str


def validate_task_id(task_id: str) -> str:
    """Ensure ``task_id`` works both as a branch name and a directory name."""

    if not task_id:
        raise UsageError("Task id must not be empty")
    if task_id.startswith("-"):
        raise UsageError(f"Task id '{task_id}' must not start with '-'")
    if task_id in {".", ".."} or ".." in task_id or "@{" in task_id:
        raise UsageError(f"Task id '{task_id}' is not a valid branch name")
    if _FORBIDDEN.search(task_id):
        raise UsageError(
            f"Task id '{task_id}' contains characters not allowed in branch or directory names"
        )
    if task_id.endswith((".", ".lock")) or task_id.startswith("."):
        raise UsageError(f"Task id '{task_id}' is not a valid branch name")
    return task_id


__all__ = ["CleanResult", "RemoveResult", "Worktree", "validate_task_id"]
