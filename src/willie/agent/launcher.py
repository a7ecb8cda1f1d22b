"""Launch the interactive coding agent inside a worktree."""

from __future__ import annotations

import logging
import shutil
import signal
import subprocess
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Protocol, Sequence

from ..errors import MissingDependencyError
from .utils import agent_environment

logger = logging.getLogger(__name__)


@contextmanager
def _sigint_ignored() -> Iterator[None]:
    """Leave Ctrl-C to the agent, which shares the terminal's process group."""

    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, signal.SIG_DFL if previous is None else previous)


@dataclass(slots=True)
class AgentExitStatus:
    """Holds the outcome of one agent session."""

    args: tuple[str, ...]
    returncode: int
    cwd: Path

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class AgentLauncher(Protocol):
    """Capability to run the agent in a directory and wait for it to exit."""

    def launch(self, working_dir: Path, instruction: str | None = None) -> AgentExitStatus:
        ...


class SubprocessAgentLauncher:
    """Run the agent as a child process attached to the current terminal."""

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise ValueError("Agent command must not be empty")
        executable = self._resolve_executable(command[0])
        self._command: tuple[str, ...] = (str(executable), *command[1:])

    @staticmethod
    def _resolve_executable(name: str) -> Path:
        candidate = Path(name).expanduser()
        if candidate.parent != Path("."):
            if candidate.is_file():
                return candidate
            raise MissingDependencyError(f"Agent executable not found at {candidate}")

        binary = shutil.which(name)
        if binary is None:
            raise MissingDependencyError(
                f"Agent command '{name}' not found on PATH",
                hint=(
                    "Install it and make sure it is on PATH, or point WILLIE_AGENT_COMMAND "
                    "at another agent.\n"
                    "  npm:   npm install -g @anthropic-ai/claude-code\n"
                    "  macOS: brew install --cask claude-code"
                ),
            )
        return Path(binary)

    @property
    def command(self) -> tuple[str, ...]:
        return self._command

    def launch(self, working_dir: Path, instruction: str | None = None) -> AgentExitStatus:
        args = list(self._command)
        if instruction is not None:
            args.append(instruction)
        logger.info(
            "Launching agent",
            extra={"cwd": str(working_dir), "autonomous": instruction is not None},
        )
        # The child is started before SIGINT is ignored so it does not inherit SIG_IGN.
        process = subprocess.Popen(args, cwd=working_dir, env=agent_environment(working_dir, instruction))
        with _sigint_ignored():
            returncode = process.wait()
        if returncode < 0:
            returncode = 128 - returncode
        logger.info("Agent exited", extra={"cwd": str(working_dir), "returncode": returncode})
        return AgentExitStatus(args=tuple(args), returncode=returncode, cwd=Path(working_dir))


class FakeAgentLauncher:
    """Test double that records launches instead of spawning a process."""

    def __init__(self, statuses: Iterable[int] | None = None) -> None:
        self._returncodes = list(statuses or [])
        self._invocations: list[tuple[Path, str | None]] = []

    def launch(self, working_dir: Path, instruction: str | None = None) -> AgentExitStatus:
        self._invocations.append((Path(working_dir), instruction))
        returncode = self._returncodes.pop(0) if self._returncodes else 0
        args: tuple[str, ...] = ("fake-agent",) if instruction is None else ("fake-agent", instruction)
        return AgentExitStatus(args=args, returncode=returncode, cwd=Path(working_dir))

    @property
    def invocations(self) -> list[tuple[Path, str | None]]:
        return self._invocations


__all__ = [
    "AgentExitStatus",
    "AgentLauncher",
    "FakeAgentLauncher",
    "SubprocessAgentLauncher",
]
