"""Ticket file access, selection, and claiming."""

from .claimer import ClaimOutcome, TicketClaimer
from .context import autonomous_instruction, format_priority, render_ticket_context
from .models import IN_PROGRESS, Ticket, select_next
from .store import TICKET_KEYS, TicketStore, ticket_entries

__all__ = [
    "IN_PROGRESS",
    "TICKET_KEYS",
    "ClaimOutcome",
    "Ticket",
    "TicketClaimer",
    "TicketStore",
    "autonomous_instruction",
    "format_priority",
    "render_ticket_context",
    "select_next",
    "ticket_entries",
]
