"""Git worktree helper that launches an AI coding agent per task."""

__version__ = "0.3.0"

__all__ = ["__version__"]
