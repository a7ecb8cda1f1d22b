"""Claim the next ticket, stage it into a worktree, and hand it to the agent."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..agent import AgentExitStatus
from ..config import WillieSettings
from ..errors import WillieError
from ..worktrees import Worktree, WorktreeManager
from .context import autonomous_instruction, render_ticket_context
from .models import Ticket
from .store import TicketStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClaimOutcome:
    ticket: Ticket
    worktree: Worktree
    context_path: Path
    exit_status: AgentExitStatus


class TicketClaimer:
    """Runs the ``--next`` flow against one ticket file."""

    def __init__(self, manager: WorktreeManager, store: TicketStore, settings: WillieSettings) -> None:
        self._manager = manager
        self._store = store
        self._settings = settings

    def claim_and_launch(
        self,
        *,
        cwd: Path,
        base_branch: str | None = None,
        on_selected: Callable[[Ticket], None] | None = None,
    ) -> ClaimOutcome | None:
        """Claim the most urgent open ticket and run the agent on it.

        Returns None when no ticket is claimable. The claim is written only
        after the worktree checks pass; if ``git worktree add`` then fails the
        claim is reverted before the error propagates.
        """

        existing = self._manager.existing_task_ids(cwd=cwd)
        prepared: list[Worktree] = []

        def before_claim(ticket: Ticket) -> None:
            if on_selected is not None:
                on_selected(ticket)
            prepared.append(self._manager.prepare(ticket.id, base_branch, cwd=cwd))

        claimed = self._store.claim_next(existing, before_claim=before_claim)
        if claimed is None:
            logger.info("No claimable ticket", extra={"ticket_file": str(self._store.path)})
            return None

        original, ticket = claimed
        worktree = prepared[0]
        try:
            self._manager.materialize(worktree, cwd=cwd)
        except WillieError:
            self._revert_claim(original)
            raise

        context_path = worktree.path / self._settings.context_filename
        context_path.write_text(
            render_ticket_context(ticket, self._store.path.name), encoding="utf-8"
        )

        instruction = autonomous_instruction(ticket, self._settings.context_filename)
        exit_status = self._manager.launch(worktree, instruction)
        return ClaimOutcome(
            ticket=ticket,
            worktree=worktree,
            context_path=context_path,
            exit_status=exit_status,
        )

    def _revert_claim(self, original: Ticket) -> None:
        try:
            self._store.release(original.id, restore_status=original.status)
        except WillieError as exc:
            logger.error(
                "Could not revert ticket claim; run willie --release to clear it",
                extra={"ticket_id": original.id, "error": str(exc)},
            )


__all__ = ["ClaimOutcome", "TicketClaimer"]
