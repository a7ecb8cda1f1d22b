from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest
import yaml

from willie.config import WillieSettings


def run_git(*args: str, cwd: Path) -> str:
    process = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return process.stdout.strip()


def branches(repo: Path) -> set[str]:
    output = run_git("branch", "--format=%(refname:short)", cwd=repo)
    return {line.strip() for line in output.splitlines() if line.strip()}


def write_tickets(path: Path, document: Any) -> None:
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")


def read_metadata(path: Path) -> dict[str, Any]:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    monkeypatch.setenv("GIT_AUTHOR_NAME", "Willie Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "willie@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Willie Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "willie@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", str(tmp_path))

    repo = tmp_path / "repo"
    repo.mkdir()
    run_git("init", "-q", cwd=repo)
    run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=repo)
    run_git("config", "commit.gpgsign", "false", cwd=repo)
    (repo / "README.md").write_text("# sample\n", encoding="utf-8")
    (repo / ".gitignore").write_text(".worktrees/\nprd.json\nprd.json.lock\n", encoding="utf-8")
    run_git("add", "README.md", ".gitignore", cwd=repo)
    run_git("commit", "-q", "-m", "initial", cwd=repo)
    return repo.resolve()


@pytest.fixture
def settings() -> WillieSettings:
    return WillieSettings(
        agent_command="fake-agent",
        default_branch="main",
        worktrees_dirname=".worktrees",
        ticket_file="prd.json",
        context_filename="TICKET.md",
        metadata_filename=".willie.yml",
        log_level="WARNING",
        _env_file=None,
    )
