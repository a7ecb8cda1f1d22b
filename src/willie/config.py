"""Configuration management for willie."""

from __future__ import annotations

from functools import lru_cache
import shlex

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WillieSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    agent_command: str = Field(default="claude", validation_alias="WILLIE_AGENT_COMMAND")
    default_branch: str = Field(default="main", validation_alias="WILLIE_DEFAULT_BRANCH")
    worktrees_dirname: str = Field(default=".worktrees", validation_alias="WILLIE_WORKTREES_DIR")
    ticket_file: str = Field(default="prd.json", validation_alias="WILLIE_TICKET_FILE")
    context_filename: str = Field(default="TICKET.md", validation_alias="WILLIE_CONTEXT_FILE")
    metadata_filename: str = Field(default=".willie.yml", validation_alias="WILLIE_METADATA_FILE")
    log_level: str = Field(default="WARNING", validation_alias="WILLIE_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "WILLIE_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("agent_command")
    @classmethod
    def _validate_agent_command(cls, value: str) -> str:
        try:
            parts = shlex.split(value)
        except ValueError as exc:
            raise ValueError(f"WILLIE_AGENT_COMMAND could not be parsed: {exc}") from exc
        if not parts:
            raise ValueError("WILLIE_AGENT_COMMAND must not be empty")
        return value.strip()

    @field_validator("default_branch", "ticket_file")
    @classmethod
    def _require_value(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("value must not be empty")
        return normalized

    @field_validator("worktrees_dirname", "context_filename", "metadata_filename")
    @classmethod
    def _single_segment(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized or normalized in {".", ".."} or "/" in normalized or "\\" in normalized:
            raise ValueError("must be a single file or directory name")
        return normalized

    @property
    def agent_argv(self) -> tuple[str, ...]:
        """Agent command split into arguments with shell quoting rules."""

        return tuple(shlex.split(self.agent_command))


@lru_cache(maxsize=1)
def get_settings() -> WillieSettings:
    """Return cached settings instance."""

    return WillieSettings()


__all__ = ["WillieSettings", "get_settings"]
