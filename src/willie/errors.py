"""Exception hierarchy shared by the worktree and ticket commands."""

from __future__ import annotations


class WillieError(RuntimeError):
    """Base class for errors reported to the user and ending the command."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class UsageError(WillieError):
    """Raised when the command line cannot be parsed."""


class NotInRepositoryError(WillieError):
    """Raised when no enclosing git repository is found."""


class WorktreeAlreadyExistsError(WillieError):
    """Raised when the target worktree directory is already present."""


class BranchAlreadyExistsError(WillieError):
    """Raised when a branch named after the task id already exists."""


class WorktreeCreationFailedError(WillieError):
    """Raised when ``git worktree add`` fails."""


class WorktreeNotFoundError(WillieError):
    """Raised when removal targets a worktree that does not exist."""


class WorktreeRemovalFailedError(WillieError):
    """Raised when ``git worktree remove`` fails for a single target."""


class TicketFileNotFoundError(WillieError):
    """Raised when the ticket file is missing."""


class TicketFileError(WillieError):
    """Raised when the ticket file cannot be read or has an unexpected shape."""


class TicketNotFoundError(WillieError):
    """Raised when a ticket id is not present in the ticket file."""


class MissingDependencyError(WillieError):
    """Raised when a required executable cannot be located."""


__all__ = [
    "BranchAlreadyExistsError",
    "MissingDependencyError",
    "NotInRepositoryError",
    "TicketFileError",
    "TicketFileNotFoundError",
    "TicketNotFoundError",
    "UsageError",
    "WillieError",
    "WorktreeAlreadyExistsError",
    "WorktreeCreationFailedError",
    "WorktreeNotFoundError",
    "WorktreeRemovalFailedError",
]
