from __future__ import annotations

import pytest
from pydantic import ValidationError

from willie.config import WillieSettings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("WILLIE_AGENT_COMMAND", "WILLIE_DEFAULT_BRANCH", "WILLIE_LOG_LEVEL", "WILLIE_TICKET_FILE"):
        monkeypatch.delenv(name, raising=False)

    settings = WillieSettings(_env_file=None)

    assert settings.agent_argv == ("claude",)
    assert settings.default_branch == "main"
    assert settings.worktrees_dirname == ".worktrees"
    assert settings.ticket_file == "prd.json"
    assert settings.context_filename == "TICKET.md"
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WILLIE_AGENT_COMMAND", "claude --model 'opus plan'")
    monkeypatch.setenv("WILLIE_LOG_LEVEL", "debug")
    monkeypatch.setenv("WILLIE_DEFAULT_BRANCH", "trunk")

    settings = WillieSettings(_env_file=None)

    assert settings.agent_argv == ("claude", "--model", "opus plan")
    assert settings.log_level == "DEBUG"
    assert settings.default_branch == "trunk"


def test_env_file_is_read(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WILLIE_TICKET_FILE", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("WILLIE_TICKET_FILE=backlog.json\n", encoding="utf-8")

    settings = WillieSettings(_env_file=env_file)

    assert settings.ticket_file == "backlog.json"


def test_invalid_log_level_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WILLIE_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        WillieSettings(_env_file=None)


def test_worktrees_dir_must_be_single_segment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WILLIE_WORKTREES_DIR", "nested/dir")
    with pytest.raises(ValidationError):
        WillieSettings(_env_file=None)


def test_empty_agent_command_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WILLIE_AGENT_COMMAND", "   ")
    with pytest.raises(ValidationError):
        WillieSettings(_env_file=None)
