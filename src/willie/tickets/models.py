"""Ticket models for the prd.json backlog."""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

IN_PROGRESS = "in_progress"
UNPRIORITIZED = float("inf")


class Ticket(BaseModel):
    """One work item in the ticket file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Unique identifier, also used as branch and worktree name.")
    title: str = Field(default="", description="Short human-readable title.")
    description: str = Field(default="", description="Free-text description of the work.")
    acceptance_criteria: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("acceptance_criteria", "acceptanceCriteria"),
        description="Ordered list of conditions the work must satisfy.",
    )
    priority: int | float | str = Field(
        default=UNPRIORITIZED,
        description=(
            "Lower values are more urgent. Numbers sort before labels such as 'P1'; "
            "tickets without one sort last."
        ),
    )
    passes: bool = Field(default=False, description="Whether the ticket is complete.")
    status: str | None = Field(default=None, description="Claim marker, e.g. 'in_progress'.")

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Ticket id must not be empty")
        return value.strip()

    @field_validator("title", "description", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> str:
        return "" if value is None else value

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any):
        if value is None:
            return UNPRIORITIZED
        if isinstance(value, str):
            label = value.strip()
            if not label:
                return UNPRIORITIZED
            try:
                return int(label)
            except ValueError:
                return label
        return value

    @field_validator("acceptance_criteria", mode="before")
    @classmethod
    def _ensure_list(cls, value: Any):  # type: ignore[override]
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        raise TypeError("acceptance_criteria must be a list of strings")

    @property
    def sort_key(self) -> tuple[int, float, str]:
        """Numbers first, then string labels, then unprioritized tickets."""

        if isinstance(self.priority, str):
            return (1, 0.0, self.priority)
        if self.priority == UNPRIORITIZED:
            return (2, 0.0, "")
        return (0, float(self.priority), "")

    @property
    def is_in_progress(self) -> bool:
        return self.status == IN_PROGRESS


def select_next(tickets: Iterable[Ticket], exclude_ids: Iterable[str] = ()) -> Ticket | None:
    """Return the most urgent claimable ticket, or None.

    Claimable means not passing, not already in progress, and not in
    ``exclude_ids``. Ties on priority keep file order.
    """

    excluded = set(exclude_ids)
    candidates = [
        ticket
        for ticket in tickets
        if not ticket.passes and not ticket.is_in_progress and ticket.id not in excluded
    ]
    if not candidates:
        return None
    return sorted(candidates, key=lambda ticket: ticket.sort_key)[0]


__all__ = ["IN_PROGRESS", "Ticket", "select_next"]
