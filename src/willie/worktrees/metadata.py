"""Per-worktree metadata file."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import yaml

from .. import __version__
from .models import Worktree

logger = logging.getLogger(__name__)

VARIANT = "python"


def build_metadata(worktree: Worktree, *, clock: Callable[[], datetime] | None = None) -> dict[str, Any]:
    now = (clock or (lambda: datetime.now(timezone.utc)))()
    return {
        "created_at": now.isoformat(),
        "task_id": worktree.task_id,
        "branch": worktree.branch,
        "base_branch": worktree.base_branch,
        "variant": VARIANT,
        "version": __version__,
    }


def write_metadata(worktree: Worktree, filename: str) -> Path | None:
    """Write the metadata file into the worktree; failures are logged, not raised."""

    target = worktree.path / filename
    try:
        target.write_text(
            yaml.safe_dump(build_metadata(worktree), sort_keys=False),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning(
            "Could not write worktree metadata",
            extra={"path": str(target), "error": str(exc)},
        )
        return None
    return target


__all__ = ["VARIANT", "build_metadata", "write_metadata"]
