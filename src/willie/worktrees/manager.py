"""Create, list, and remove per-task git worktrees."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator

from ..agent import AgentExitStatus, AgentLauncher
from ..config import WillieSettings
from ..errors import (
    BranchAlreadyExistsError,
    WorktreeAlreadyExistsError,
    WorktreeCreationFailedError,
    WorktreeNotFoundError,
    WorktreeRemovalFailedError,
)
from ..git import GitClient, WorktreeEntry
from .metadata import write_metadata
from .models import CleanResult, RemoveResult, Worktree, validate_task_id

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class WorktreeManager:
    """Owns the mapping between task ids, branches, and worktree directories.

    Every worktree lives at ``<repo root>/<worktrees_dirname>/<task_id>`` on a
    branch named ``task_id``. The repository root is resolved from ``cwd`` on
    each call, so the manager works from any subdirectory.
    """

    def __init__(
        self,
        git: GitClient,
        settings: WillieSettings,
        launcher: AgentLauncher | None = None,
    ) -> None:
        self._git = git
        self._settings = settings
        self._launcher = launcher

    @property
    def git(self) -> GitClient:
        return self._git

    def worktrees_dir(self, cwd: Path) -> Path:
        return self._git.repo_root(cwd) / self._settings.worktrees_dirname

    def prepare(self, task_id: str, base_branch: str | None = None, *, cwd: Path) -> Worktree:
        """Run the pre-creation checks and return the worktree to be created.

        Raises ``NotInRepositoryError``, ``WorktreeAlreadyExistsError`` or
        ``BranchAlreadyExistsError``. Nothing is written.
        """

        validate_task_id(task_id)
        path = self.worktrees_dir(cwd) / task_id
        if path.exists():
            raise WorktreeAlreadyExistsError(
                f"Worktree already exists at {path}",
                hint=f"Remove it first with: willie --clean {task_id}",
            )

        if not base_branch:
            base_branch = self._git.current_branch(cwd) or self._settings.default_branch

        if self._git.branch_exists(task_id, cwd):
            raise BranchAlreadyExistsError(
                f"Branch '{task_id}' already exists",
                hint="Use a different task id or delete the existing branch first",
            )

        return Worktree(task_id=task_id, base_branch=base_branch, path=path)

    def materialize(self, worktree: Worktree, *, cwd: Path) -> Worktree:
        result = self._git.worktree_add(worktree.path, worktree.branch, worktree.base_branch, cwd=cwd)
        if not result.ok:
            raise WorktreeCreationFailedError(
                f"Failed to create worktree: {result.stderr.strip() or 'git worktree add failed'}"
            )
        logger.info(
            "Created worktree",
            extra={"task_id": worktree.task_id, "path": str(worktree.path), "base": worktree.base_branch},
        )
        write_metadata(worktree, self._settings.metadata_filename)
        return worktree

    def create(self, task_id: str, base_branch: str | None = None, *, cwd: Path) -> Worktree:
        worktree = self.prepare(task_id, base_branch, cwd=cwd)
        return self.materialize(worktree, cwd=cwd)

    def launch(self, worktree: Worktree, instruction: str | None = None) -> AgentExitStatus:
        if self._launcher is None:
            raise RuntimeError("No agent launcher configured")
        return self._launcher.launch(worktree.path, instruction)

    def list(self, *, cwd: Path) -> str:
        return self._git.worktree_list(cwd)

    def registered(self, *, cwd: Path) -> tuple[WorktreeEntry, ...]:
        """Worktrees git still tracks inside the worktrees directory."""

        base = self.worktrees_dir(cwd).resolve()
        return tuple(
            entry for entry in self._git.worktree_entries(cwd) if Path(entry.path).resolve().parent == base
        )

    def existing_task_ids(self, *, cwd: Path) -> set[str]:
        base = self.worktrees_dir(cwd)
        if not base.is_dir():
            return set()
        return {entry.name for entry in base.iterdir() if entry.is_dir()}

    def remove(self, task_id: str, *, cwd: Path, confirm: Confirm) -> RemoveResult:
        """Force-remove one worktree, then ask whether to delete its branch."""

        validate_task_id(task_id)
        path = self.worktrees_dir(cwd) / task_id
        if not path.is_dir():
            raise WorktreeNotFoundError(
                f"Worktree not found at {path}",
                hint="Available worktrees:\n" + self._git.worktree_list(cwd),
            )

        result = self._git.worktree_remove(path, cwd=cwd)
        if not result.ok:
            raise WorktreeRemovalFailedError(
                f"Failed to remove worktree: {result.stderr.strip() or 'git worktree remove failed'}"
            )
        logger.info("Removed worktree", extra={"task_id": task_id, "path": str(path)})

        outcome = RemoveResult(task_id=task_id, path=path)
        if not confirm(f"Delete branch '{task_id}'? (y/N) "):
            return outcome

        deleted = self._git.branch_delete(task_id, cwd=cwd)
        if deleted.ok:
            outcome.branch_deleted = True
        else:
            outcome.branch_error = deleted.stderr.strip() or "git branch -D failed"
        return outcome

    def remove_all(self, *, cwd: Path) -> Iterator[CleanResult]:
        """Force-remove every worktree directory, yielding each result as it completes."""

        base = self.worktrees_dir(cwd)
        if not base.is_dir():
            return

        locked = {Path(entry.path).resolve() for entry in self.registered(cwd=cwd) if entry.locked}
        for path in sorted(base.iterdir()):
            if not path.is_dir():
                continue
            result = self._git.worktree_remove(path, cwd=cwd)
            if result.ok:
                yield CleanResult(task_id=path.name, path=path, ok=True, message="removed")
                continue

            message = result.stderr.strip() or "git worktree remove failed"
            if path.resolve() in locked:
                message = f"worktree is locked; unlock it with: git worktree unlock {path}"
            logger.warning(
                "Bulk removal failed for worktree",
                extra={"task_id": path.name, "stderr": result.stderr.strip()},
            )
            yield CleanResult(task_id=path.name, path=path, ok=False, message=message)

        self._git.run("worktree", "prune", cwd=cwd)


__all__ = ["Confirm", "WorktreeManager"]
