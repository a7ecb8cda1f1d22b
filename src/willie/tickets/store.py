"""Read, claim, and atomically rewrite the ticket file."""

from __future__ import annotations

import fcntl
import json
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

from pydantic import ValidationError

from ..errors import TicketFileError, TicketFileNotFoundError, TicketNotFoundError
from .models import IN_PROGRESS, Ticket, select_next

logger = logging.getLogger(__name__)

TICKET_KEYS = ("userStories", "tickets", "stories")


def ticket_entries(document: Any) -> list[dict[str, Any]]:
    """Return the mutable list of raw ticket objects inside ``document``.

    The document is either a bare array or an object holding the array under
    one of ``TICKET_KEYS``.
    """

    if isinstance(document, list):
        entries = document
    elif isinstance(document, dict):
        for key in TICKET_KEYS:
            if isinstance(document.get(key), list):
                entries = document[key]
                break
        else:
            raise TicketFileError(
                "Ticket file has no ticket array",
                hint="Expected a top-level array or one of: " + ", ".join(TICKET_KEYS),
            )
    else:
        raise TicketFileError("Ticket file must contain a JSON array or object")

    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise TicketFileError(f"Ticket #{position + 1} is not a JSON object")
    return entries


class TicketStore:
    """Access to one ticket file on disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock_path(self) -> Path:
        return self._path.with_name(self._path.name + ".lock")

    def exists(self) -> bool:
        return self._path.is_file()

    def _require_file(self) -> None:
        if not self.exists():
            raise TicketFileNotFoundError(
                f"{self._path.name} not found in {self._path.parent}",
                hint="Generate a ticket file with your planning tool first.",
            )

    def read_document(self) -> Any:
        self._require_file()
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise TicketFileError(f"{self._path.name} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise TicketFileError(f"Could not read {self._path}: {exc}") from exc

    def load(self) -> list[Ticket]:
        return self._validate(ticket_entries(self.read_document()))

    def _validate(self, entries: list[dict[str, Any]]) -> list[Ticket]:
        tickets: list[Ticket] = []
        seen: set[str] = set()
        for position, entry in enumerate(entries):
            try:
                ticket = Ticket.model_validate(entry)
            except ValidationError as exc:
                raise TicketFileError(f"Ticket #{position + 1} is invalid: {exc}") from exc
            if ticket.id in seen:
                raise TicketFileError(f"Duplicate ticket id '{ticket.id}' in {self._path.name}")
            seen.add(ticket.id)
            tickets.append(ticket)
        return tickets

    def write_atomically(self, document: Any) -> None:
        """Replace the ticket file with ``document`` via a temp file in the same directory."""

        content = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            if self._path.exists():
                shutil.copymode(self._path, tmp_path)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive lock on the sibling ``.lock`` file."""

        with open(self.lock_path, "a+", encoding="utf-8") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def claim_next(
        self,
        exclude_ids: Iterable[str] = (),
        *,
        before_claim: Callable[[Ticket], None] | None = None,
    ) -> tuple[Ticket, Ticket] | None:
        """Select the next ticket and mark it in progress.

        Re-reads the file under the lock so a concurrent claim is always
        visible. ``before_claim`` runs inside the lock after selection; if it
        raises, the file is left untouched. Returns ``(before, after)``
        snapshots of the claimed ticket, or None when nothing is claimable.
        """

        self._require_file()
        with self.lock():
            document = self.read_document()
            entries = ticket_entries(document)
            tickets = self._validate(entries)
            chosen = select_next(tickets, exclude_ids)
            if chosen is None:
                return None
            if before_claim is not None:
                before_claim(chosen)

            index = next(i for i, ticket in enumerate(tickets) if ticket.id == chosen.id)
            entries[index]["status"] = IN_PROGRESS
            self.write_atomically(document)

        logger.info("Claimed ticket", extra={"ticket_id": chosen.id, "ticket_file": str(self._path)})
        return chosen, chosen.model_copy(update={"status": IN_PROGRESS})

    def release(self, ticket_id: str, *, restore_status: str | None = None) -> bool:
        """Undo an in-progress claim.

        The ``status`` field is removed, or set back to ``restore_status`` when
        the ticket carried one before it was claimed. Returns False when the
        ticket was not in progress.
        """

        self._require_file()
        with self.lock():
            document = self.read_document()
            entries = ticket_entries(document)
            tickets = self._validate(entries)
            for index, ticket in enumerate(tickets):
                if ticket.id == ticket_id:
                    break
            else:
                raise TicketNotFoundError(f"Ticket '{ticket_id}' not found in {self._path.name}")

            entry = entries[index]
            if entry.get("status") != IN_PROGRESS:
                return False
            if restore_status is None:
                del entry["status"]
            else:
                entry["status"] = restore_status
            self.write_atomically(document)

        logger.info("Released ticket claim", extra={"ticket_id": ticket_id})
        return True


__all__ = ["TICKET_KEYS", "TicketStore", "ticket_entries"]
