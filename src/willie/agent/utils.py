"""Environment handling for agent processes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

_INTERPRETER_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
}
_CONFIG_PREFIX = "WILLIE_"


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Copy ``os.environ`` without interpreter settings or willie's own configuration."""

    env = {
        key: value
        for key, value in os.environ.items()
        if key not in _INTERPRETER_VARS and not key.startswith(_CONFIG_PREFIX)
    }
    if additional:
        env.update(additional)
    return env


def agent_environment(working_dir: Path, instruction: str | None = None) -> dict[str, str]:
    env = sanitize_environment({"WILLIE_WORKTREE": str(Path(working_dir).resolve())})
    if instruction is not None:
        env["WILLIE_AUTONOMOUS"] = "1"
    return env


__all__ = ["agent_environment", "sanitize_environment"]
