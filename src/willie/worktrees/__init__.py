"""Worktree lifecycle management."""

from .manager import Confirm, WorktreeManager
from .metadata import write_metadata
from .models import CleanResult, RemoveResult, Worktree, validate_task_id

__all__ = [
    "CleanResult",
    "Confirm",
    "RemoveResult",
    "Worktree",
    "WorktreeManager",
    "validate_task_id",
    "write_metadata",
]
