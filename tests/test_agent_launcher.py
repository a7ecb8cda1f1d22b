from __future__ import annotations

import os
import signal
import threading
from pathlib import Path

import pytest

from willie.agent import FakeAgentLauncher, SubprocessAgentLauncher
from willie.agent.utils import agent_environment, sanitize_environment
from willie.errors import MissingDependencyError


def _script(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "agent"
    script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    script.chmod(0o755)
    return script


def test_launch_runs_in_working_dir(tmp_path: Path) -> None:
    out = tmp_path / "out.txt"
    script = _script(tmp_path, f"pwd > {out}\necho \"$#:$1\" >> {out}\n")
    workdir = tmp_path / "work"
    workdir.mkdir()

    launcher = SubprocessAgentLauncher([str(script)])
    status = launcher.launch(workdir)

    assert status.ok
    lines = out.read_text(encoding="utf-8").splitlines()
    assert Path(lines[0]).resolve() == workdir.resolve()
    assert lines[1] == "0:"


def test_launch_passes_instruction_as_single_argument(tmp_path: Path) -> None:
    out = tmp_path / "out.txt"
    script = _script(tmp_path, f"echo \"$#:$2\" > {out}\n")

    launcher = SubprocessAgentLauncher([str(script), "--verbose"])
    status = launcher.launch(tmp_path, "Work on ticket US-1: do the thing")

    assert status.args[-1] == "Work on ticket US-1: do the thing"
    assert out.read_text(encoding="utf-8").strip() == "2:Work on ticket US-1: do the thing"


def test_nonzero_exit_is_reported_not_raised(tmp_path: Path) -> None:
    script = _script(tmp_path, "exit 3\n")

    status = SubprocessAgentLauncher([str(script)]).launch(tmp_path)

    assert status.returncode == 3
    assert not status.ok


def test_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(MissingDependencyError):
        SubprocessAgentLauncher([str(tmp_path / "missing")])


def test_missing_command_on_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PATH", str(tmp_path))
    with pytest.raises(MissingDependencyError) as excinfo:
        SubprocessAgentLauncher(["definitely-not-an-agent"])
    assert excinfo.value.hint


def test_fake_launcher_records_invocations(tmp_path: Path) -> None:
    fake = FakeAgentLauncher([7])

    first = fake.launch(tmp_path, "go")
    second = fake.launch(tmp_path)

    assert first.returncode == 7
    assert second.returncode == 0
    assert fake.invocations == [(tmp_path, "go"), (tmp_path, None)]


def test_sanitize_environment_strips_virtualenv_and_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIRTUAL_ENV", "/opt/venv")
    monkeypatch.setenv("PYTHONPATH", "value")
    monkeypatch.setenv("WILLIE_AGENT_COMMAND", "claude --verbose")
    monkeypatch.setenv("HOME_GROWN", "kept")
    env = sanitize_environment({"EXTRA": "1"})
    assert "VIRTUAL_ENV" not in env
    assert "PYTHONPATH" not in env
    assert "WILLIE_AGENT_COMMAND" not in env
    assert env["HOME_GROWN"] == "kept"
    assert env["EXTRA"] == "1"


def test_agent_environment_marks_worktree(tmp_path: Path) -> None:
    interactive = agent_environment(tmp_path)
    autonomous = agent_environment(tmp_path, "go")

    assert interactive["WILLIE_WORKTREE"] == str(tmp_path.resolve())
    assert "WILLIE_AUTONOMOUS" not in interactive
    assert autonomous["WILLIE_AUTONOMOUS"] == "1"


def test_launch_exports_worktree_to_agent(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WILLIE_LOG_LEVEL", "DEBUG")
    out = tmp_path / "env.txt"
    script = _script(tmp_path, f"echo \"$WILLIE_WORKTREE|${{WILLIE_LOG_LEVEL:-unset}}\" > {out}\n")

    SubprocessAgentLauncher([str(script)]).launch(tmp_path)

    assert out.read_text(encoding="utf-8").strip() == f"{tmp_path.resolve()}|unset"


def test_ctrl_c_is_left_to_the_agent(tmp_path: Path) -> None:
    out = tmp_path / "out.txt"
    script = _script(tmp_path, f"trap '' INT\nsleep 1.5\necho survived > {out}\nexit 7\n")
    handler = signal.getsignal(signal.SIGINT)
    interrupt = threading.Timer(0.3, os.kill, (os.getpid(), signal.SIGINT))

    interrupt.start()
    try:
        status = SubprocessAgentLauncher([str(script)]).launch(tmp_path)
    finally:
        interrupt.cancel()

    assert status.returncode == 7
    assert out.read_text(encoding="utf-8").strip() == "survived"
    assert signal.getsignal(signal.SIGINT) is handler


def test_agent_killed_by_signal_reports_shell_status(tmp_path: Path) -> None:
    script = _script(tmp_path, "kill -TERM $$\nsleep 5\n")

    status = SubprocessAgentLauncher([str(script)]).launch(tmp_path)

    assert status.returncode == 128 + signal.SIGTERM
