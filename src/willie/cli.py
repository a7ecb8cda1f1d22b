"""Command-line entry point for willie."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

from pydantic import ValidationError

from . import __version__
from .agent import AgentLauncher, SubprocessAgentLauncher
from .config import WillieSettings, get_settings
from .errors import UsageError, WillieError
from .git import GitClient
from .tickets import Ticket, TicketClaimer, TicketStore, format_priority
from .worktrees import Confirm, WorktreeManager

logger = logging.getLogger(__name__)

USAGE = "Usage: willie <task-id> [--from <branch>] | --next [--from <branch>] | --status | --clean <task-id>|--all | --release <task-id> | --help"

HELP_TEXT = """\
Groundskeeper Willie - git worktree helper for AI coding agents

COMMANDS:
  willie <task-id> [--from <branch>]
      Create .worktrees/<task-id> on a new branch <task-id> and launch the agent in it.
      --from <branch>  base branch (default: current branch, or main on a detached HEAD)

  willie --next [--from <branch>]
      Claim the highest-priority incomplete ticket from prd.json, create its
      worktree, write TICKET.md into it, and launch the agent autonomously.

  willie --status
      List all worktrees.

  willie --clean <task-id>
      Remove a worktree and optionally its branch.

  willie --clean --all
      Remove every worktree under .worktrees/ (branches are kept).

  willie --release <task-id>
      Clear the in-progress claim on a ticket left behind by an interrupted run.

  willie --help
      Show this help message.

WORKFLOW:
  1. Run: willie PCT-522
  2. Work with the agent (in .worktrees/PCT-522/)
  3. Exit the agent when done
  4. Clean up: willie --clean PCT-522

NOTES:
  - Add .worktrees/ and prd.json.lock to .gitignore
  - Each worktree gets its own branch named after the task id
  - Several agents can work in different worktrees at the same time
  - Worktrees and branches are never removed automatically

CONFIGURATION (environment or .env):
  WILLIE_AGENT_COMMAND   agent command line (default: claude)
  WILLIE_DEFAULT_BRANCH  base branch on a detached HEAD (default: main)
  WILLIE_TICKET_FILE     ticket file name (default: prd.json)
  WILLIE_LOG_LEVEL       diagnostics log level (default: WARNING)
"""


@dataclass(frozen=True, slots=True)
class CreateCommand:
    task_id: str
    base_branch: str | None = None


@dataclass(frozen=True, slots=True)
class StatusCommand:
    pass


@dataclass(frozen=True, slots=True)
class CleanCommand:
    target: str | None = None
    all: bool = False


@dataclass(frozen=True, slots=True)
class NextCommand:
    base_branch: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseCommand:
    task_id: str


@dataclass(frozen=True, slots=True)
class HelpCommand:
    pass


Command = Union[CreateCommand, StatusCommand, CleanCommand, NextCommand, ReleaseCommand, HelpCommand]
LauncherFactory = Callable[[WillieSettings], AgentLauncher]


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="willie", add_help=False, allow_abbrev=False)
    parser.add_argument("task_id", nargs="?")
    parser.add_argument("--from", dest="base_branch", metavar="BRANCH")
    parser.add_argument("--status", action="store_true")
    parser.add_argument("--clean", action="store_true")
    parser.add_argument("--all", dest="clean_all", action="store_true")
    parser.add_argument("--next", action="store_true")
    parser.add_argument("--release", action="store_true")
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("--version", action="version", version=f"willie {__version__}")
    return parser


def parse_command(argv: list[str]) -> Command:
    """Turn command-line tokens into a command; raises ``UsageError``."""

    if not argv:
        raise UsageError("No task id given")

    args = build_parser().parse_args(argv)
    modes = [f"--{name}" for name in ("status", "clean", "next", "release", "help") if getattr(args, name)]
    if len(modes) > 1:
        raise UsageError(f"Options {' and '.join(modes)} cannot be combined")
    if args.help:
        return HelpCommand()
    if args.clean_all and not args.clean:
        raise UsageError("--all is only valid with --clean")
    if args.base_branch is not None and (args.status or args.clean or args.release):
        raise UsageError("--from is only valid when creating a worktree or with --next")

    if args.status:
        if args.task_id:
            raise UsageError(f"Unexpected argument '{args.task_id}'")
        return StatusCommand()
    if args.clean:
        if args.clean_all and args.task_id:
            raise UsageError("Give either a task id or --all to --clean, not both")
        return CleanCommand(target=args.task_id, all=args.clean_all)
    if args.next:
        if args.task_id:
            raise UsageError(f"Unexpected argument '{args.task_id}'")
        return NextCommand(base_branch=args.base_branch)
    if args.release:
        if not args.task_id:
            raise UsageError("--release needs a task id")
        return ReleaseCommand(task_id=args.task_id)
    if not args.task_id:
        raise UsageError("No task id given")
    return CreateCommand(task_id=args.task_id, base_branch=args.base_branch)


def prompt_yes_no(question: str) -> bool:
    try:
        answer = input(question)
    except EOFError:
        print()
        return False
    return answer.strip().lower() in {"y", "yes"}


def _default_launcher(settings: WillieSettings) -> AgentLauncher:
    return SubprocessAgentLauncher(settings.agent_argv)


def _echo_ticket(ticket: Ticket) -> None:
    print(f"Next ticket: {ticket.id} (priority {format_priority(ticket.priority)})")
    print(f"  {ticket.title}")
    print()


def run(
    command: Command,
    *,
    settings: WillieSettings,
    cwd: Path,
    git: GitClient | None = None,
    launcher_factory: LauncherFactory | None = None,
    confirm: Confirm | None = None,
) -> int:
    """Execute ``command`` and return the process exit code."""

    git = git or GitClient()
    launcher_factory = launcher_factory or _default_launcher
    confirm = confirm or prompt_yes_no

    if isinstance(command, HelpCommand):
        print(HELP_TEXT, end="")
        return 0

    if isinstance(command, StatusCommand):
        manager = WorktreeManager(git, settings)
        print("Git worktrees:")
        print(manager.list(cwd=cwd))
        return 0

    if isinstance(command, CleanCommand):
        return _run_clean(command, WorktreeManager(git, settings), settings, cwd, confirm)

    if isinstance(command, ReleaseCommand):
        store = TicketStore(cwd / settings.ticket_file)
        if store.release(command.task_id):
            print(f"Released claim on ticket {command.task_id}")
        else:
            print(f"Ticket {command.task_id} is not in progress; nothing to release")
        return 0

    if isinstance(command, NextCommand):
        store = TicketStore(cwd / settings.ticket_file)
        store.load()
        manager = WorktreeManager(git, settings, launcher_factory(settings))
        claimer = TicketClaimer(manager, store, settings)
        outcome = claimer.claim_and_launch(
            cwd=cwd, base_branch=command.base_branch, on_selected=_echo_ticket
        )
        if outcome is None:
            print("Nothing to do: every ticket is complete, claimed, or already has a worktree.")
            return 0
        print()
        print(f"Agent exited (status {outcome.exit_status.returncode}).")
        print(f"Worktree kept at {outcome.worktree.path}")
        print(f"Clean up with: willie --clean {outcome.ticket.id}")
        return 0

    return _run_create(command, git, settings, cwd, launcher_factory)


def _run_create(
    command: CreateCommand,
    git: GitClient,
    settings: WillieSettings,
    cwd: Path,
    launcher_factory: LauncherFactory,
) -> int:
    manager = WorktreeManager(git, settings, launcher_factory(settings))
    worktree = manager.prepare(command.task_id, command.base_branch, cwd=cwd)

    print("Creating worktree...")
    print(f"  Task ID: {worktree.task_id}")
    print(f"  Branch: {worktree.branch} (from {worktree.base_branch})")
    print(f"  Location: {worktree.path}")
    print()
    manager.materialize(worktree, cwd=cwd)
    print("Worktree created successfully!")
    print("Launching agent...")
    print()

    status = manager.launch(worktree)
    print()
    print(f"Agent exited (status {status.returncode}).")
    print(f"Worktree kept at {worktree.path}")
    print(f"Clean up with: willie --clean {worktree.task_id}")
    return 0


def _run_clean(
    command: CleanCommand,
    manager: WorktreeManager,
    settings: WillieSettings,
    cwd: Path,
    confirm: Confirm,
) -> int:
    if command.all:
        base = manager.worktrees_dir(cwd)
        if not base.is_dir():
            print(f"No {settings.worktrees_dirname} directory found; nothing to clean")
            return 0
        print(f"Cleaning all worktrees in {settings.worktrees_dirname}/...")
        failures = 0
        for result in manager.remove_all(cwd=cwd):
            if result.ok:
                print(f"Removed worktree: {result.task_id}")
            else:
                failures += 1
                print(f"Error: Failed to remove worktree {result.task_id}: {result.message}", file=sys.stderr)
        leftovers = manager.registered(cwd=cwd)
        if leftovers:
            print("Still registered with git:")
            for entry in leftovers:
                flags = [name for name in ("locked", "prunable") if getattr(entry, name)]
                suffix = f" ({', '.join(flags)})" if flags else ""
                print(f"  {entry.path}{suffix}")
        if failures:
            print(f"Done, {failures} worktree(s) could not be removed")
        else:
            print("All worktrees cleaned!")
        return 0

    if command.target is None:
        print("Current worktrees:")
        print()
        print(manager.list(cwd=cwd))
        print()
        print("Usage: willie --clean <task-id>")
        print("   or: willie --clean --all  (remove all worktrees in .worktrees/)")
        return 0

    print(f"Removing worktree: {command.target}")
    result = manager.remove(command.target, cwd=cwd, confirm=confirm)
    print(f"Worktree removed: {result.path}")
    if result.branch_deleted:
        print(f"Branch '{command.target}' deleted!")
        return 0
    if result.branch_error:
        print(f"Error: Failed to delete branch '{command.target}': {result.branch_error}", file=sys.stderr)
        return 1
    print(f"Branch '{command.target}' kept")
    return 0


def configure_logging(level: str) -> None:
    """Configure root logging for the willie CLI."""

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def _report(exc: WillieError) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if exc.hint:
        print(exc.hint, file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        raise SystemExit(1)
    configure_logging(settings.log_level)

    try:
        command = parse_command(sys.argv[1:] if argv is None else argv)
        exit_code = run(command, settings=settings, cwd=Path.cwd())
    except UsageError as exc:
        _report(exc)
        print(USAGE, file=sys.stderr)
        print("Run 'willie --help' for details.", file=sys.stderr)
        exit_code = 1
    except WillieError as exc:
        logger.debug("Command failed", exc_info=True)
        _report(exc)
        exit_code = 1

    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
