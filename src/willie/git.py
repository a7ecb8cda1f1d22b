"""Thin wrapper around the git command line."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import MissingDependencyError, NotInRepositoryError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GitResult:
    """Holds the outcome of a git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(slots=True)
class WorktreeEntry:
    """One record of ``git worktree list --porcelain``."""

    path: str
    branch: str
    commit: str
    is_bare: bool = False
    is_detached: bool = False
    locked: bool = False
    prunable: bool = False


class GitClient:
    """Run git commands with an explicit working directory."""

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def run(self, *args: str, cwd: Path) -> GitResult:
        cmd = (self._executable, *args)
        try:
            process = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise MissingDependencyError(
                f"{self._executable} not found",
                hint="Install git: https://git-scm.com/downloads",
            ) from exc
        result = GitResult(
            args=cmd,
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )
        if not result.ok:
            logger.debug(
                "git command failed",
                extra={"command": " ".join(cmd), "returncode": result.returncode, "stderr": result.stderr.strip()},
            )
        return result

    def repo_root(self, cwd: Path) -> Path:
        result = self.run("rev-parse", "--show-toplevel", cwd=cwd)
        if not result.ok or not result.stdout.strip():
            raise NotInRepositoryError("Not in a git repository")
        return Path(result.stdout.strip())

    def current_branch(self, cwd: Path) -> str | None:
        """Return the checked-out branch, or None on a detached HEAD."""

        result = self.run("branch", "--show-current", cwd=cwd)
        branch = result.stdout.strip() if result.ok else ""
        return branch or None

    def branch_exists(self, name: str, cwd: Path) -> bool:
        result = self.run("show-ref", "--verify", "--quiet", f"refs/heads/{name}", cwd=cwd)
        return result.ok

    def worktree_add(self, path: Path, branch: str, base: str, cwd: Path) -> GitResult:
        return self.run("worktree", "add", "-b", branch, str(path), base, cwd=cwd)

    def worktree_remove(self, path: Path, cwd: Path) -> GitResult:
        return self.run("worktree", "remove", "--force", str(path), cwd=cwd)

    def branch_delete(self, name: str, cwd: Path) -> GitResult:
        return self.run("branch", "-D", name, cwd=cwd)

    def worktree_list(self, cwd: Path) -> str:
        result = self.run("worktree", "list", cwd=cwd)
        if not result.ok:
            raise NotInRepositoryError(result.stderr.strip() or "Not in a git repository")
        return result.stdout.rstrip("\n")

    def worktree_entries(self, cwd: Path) -> list[WorktreeEntry]:
        result = self.run("worktree", "list", "--porcelain", cwd=cwd)
        if not result.ok:
            raise NotInRepositoryError(result.stderr.strip() or "Not in a git repository")

        entries: list[WorktreeEntry] = []
        current: dict[str, str] = {}
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                if current:
                    entries.append(_parse_entry(current))
                    current = {}
                continue
            key, _, value = line.partition(" ")
            current[key] = value or "true"
        if current:
            entries.append(_parse_entry(current))
        return entries


def _parse_entry(data: dict[str, str]) -> WorktreeEntry:
    return WorktreeEntry(
        path=data.get("worktree", ""),
        branch=data.get("branch", "").removeprefix("refs/heads/"),
        commit=data.get("HEAD", ""),
        is_bare="bare" in data,
        is_detached="detached" in data,
        locked="locked" in data,
        prunable="prunable" in data,
    )


__all__ = ["GitClient", "GitResult", "WorktreeEntry"]
