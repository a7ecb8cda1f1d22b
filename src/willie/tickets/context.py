"""Render the ticket brief handed to the agent."""

from __future__ import annotations

import math

from .models import Ticket


def format_priority(priority: int | float) -> str:
    if isinstance(priority, float) and math.isinf(priority):
        return "unset"
    return str(priority)


def render_ticket_context(ticket: Ticket, ticket_file_name: str) -> str:
    criteria = "\n".join(f"- {item}" for item in ticket.acceptance_criteria) or "- (none specified)"
    description = ticket.description.strip() or "(no description)"

    sections = [
        f"# Ticket {ticket.id}: {ticket.title}",
        f"**Priority:** {format_priority(ticket.priority)}",
        "## Description\n\n" + description,
        "## Acceptance Criteria\n\n" + criteria,
        "## Instructions\n\n"
        "You are working autonomously on this ticket in a dedicated git worktree.\n\n"
        "1. Implement the changes described above.\n"
        "2. Write or update tests so every acceptance criterion is covered, and run them.\n"
        f"3. When all criteria are met, set `\"passes\": true` for ticket `{ticket.id}` "
        f"in `{ticket_file_name}`.\n"
        f"4. Commit your work on this branch with a message referencing `{ticket.id}`.\n\n"
        "Do not work on other tickets in this session.",
    ]
    return "\n\n".join(sections) + "\n"


def autonomous_instruction(ticket: Ticket, context_filename: str) -> str:
    return (
        f"Work on ticket {ticket.id}: {ticket.title}. "
        f"Read {context_filename} in this directory for the full description, "
        "acceptance criteria and instructions, then implement, test, and commit."
    )


__all__ = ["autonomous_instruction", "format_priority", "render_ticket_context"]
