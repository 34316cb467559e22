"""CLI commands for reading and editing the board: board, show, move, edit, undo."""

from __future__ import annotations

import json as json_mod
from typing import Any

import click

from boardsync.cli_common import (
    CommandError,
    clear_last_action,
    fail,
    get_boardsync_dir,
    load_last_action,
    open_session,
    run_async,
    save_last_action,
)
from boardsync.core import EDITABLE_FIELDS, Issue
from boardsync.mutations import MutationOutcome
from boardsync.scoring import score
from boardsync.session import BoardSession
from boardsync.undo import time_left_ms


def _issue_line(issue: Issue, session: BoardSession) -> str:
    parts = [f"[{issue.id}] {issue.title}", f"sev {issue.severity}", f"score {score(issue, session.store.clock())}"]
    if issue.assignee:
        parts.append(f"@{issue.assignee}")
    if issue.tags:
        parts.append(", ".join(issue.tags))
    return "  ".join(parts)


def _parse_value(raw: str) -> Any:
    """Interpret a ``--set`` value: JSON where it parses, a plain string otherwise."""
    try:
        return json_mod.loads(raw)
    except json_mod.JSONDecodeError:
        return raw


def _report_mutation(session: BoardSession, issue_id: str, outcome: MutationOutcome, as_json: bool) -> None:
    if outcome is MutationOutcome.REJECTED:
        raise CommandError(f"User {session.auth.user.name} is not allowed to edit issues")
    if outcome is MutationOutcome.IGNORED:
        raise CommandError(f"Issue not found: {issue_id}")
    if outcome is MutationOutcome.ROLLED_BACK:
        raise CommandError(f"{session.store.error}; {issue_id} was rolled back")

    issue = session.get_issue(issue_id)
    left = session.engine.undo_time_left()
    if as_json:
        click.echo(
            json_mod.dumps(
                {"outcome": outcome.value, "issue": issue.to_dict() if issue else None, "undoMs": left},
                indent=2,
            )
        )
        return
    if issue is not None:
        click.echo(f"Updated {issue.id}: {issue.title} [{issue.status}]")
    if left:
        click.echo(f"Run 'boardsync undo' within {left / 1000:.1f}s to revert.")


@click.command()
@click.option("--page", default=1, type=click.IntRange(min=1), help="Page number (default 1)")
@click.option("--search", default="", help="Case-insensitive title/tag search")
@click.option("--assignee", default="", help="Only issues assigned to this user")
@click.option("--severity", default=None, type=int, help="Only issues with this severity")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def board(page: int, search: str, assignee: str, severity: int | None, as_json: bool) -> None:
    """Show the board, ordered by priority score."""
    boardsync_dir = get_boardsync_dir()

    async def _run() -> None:
        async with open_session(boardsync_dir) as session:
            session.set_filters(search=search, assignee=assignee, severity=severity)
            session.set_page(page)
            if as_json:
                click.echo(json_mod.dumps(session.to_response(), indent=2, default=str))
                return
            current = session.board()
            for column in current.columns:
                click.echo(f"{column.status} ({column.total_issues})")
                if not column.items:
                    click.echo("  (empty)")
                for issue in column.items:
                    click.echo(f"  {_issue_line(issue, session)}")
            click.echo(f"\nPage {current.page}/{current.total_pages}")

    run_async(_run(), as_json=as_json)


@click.command()
@click.argument("issue_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(issue_id: str, as_json: bool) -> None:
    """Show issue details."""
    boardsync_dir = get_boardsync_dir()

    async def _run() -> None:
        async with open_session(boardsync_dir) as session:
            issue = session.get_issue(issue_id)
            if issue is None:
                raise CommandError(f"Issue not found: {issue_id}")
            if as_json:
                click.echo(json_mod.dumps(issue.to_dict(), indent=2))
                return
            click.echo(f"ID:       {issue.id}")
            click.echo(f"Title:    {issue.title}")
            click.echo(f"Status:   {issue.status}")
            click.echo(f"Priority: {issue.priority}")
            click.echo(f"Severity: {issue.severity}")
            click.echo(f"Score:    {score(issue, session.store.clock())}")
            if issue.assignee:
                click.echo(f"Assignee: {issue.assignee}")
            click.echo(f"Created:  {issue.created_at}")
            if issue.tags:
                click.echo(f"Tags:     {', '.join(issue.tags)}")
            if issue.user_defined_rank is not None:
                click.echo(f"Rank:     {issue.user_defined_rank}")
            if issue.description:
                click.echo(f"\n--- Description ---\n{issue.description}")

    run_async(_run(), as_json=as_json)


@click.command()
@click.argument("issue_id")
@click.argument("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def move(issue_id: str, status: str, as_json: bool) -> None:
    """Move an issue to another column (Backlog, "In Progress", Done)."""
    boardsync_dir = get_boardsync_dir()

    async def _run() -> None:
        async with open_session(boardsync_dir, require_remote=True) as session:
            try:
                outcome = await session.move(issue_id, status)
            except ValueError as e:
                raise CommandError(str(e)) from e
            save_last_action(boardsync_dir, session)
            _report_mutation(session, issue_id, outcome, as_json)

    run_async(_run(), as_json=as_json)


@click.command()
@click.argument("issue_id")
@click.option("--set", "assignments", multiple=True, required=True, help="Field as key=value (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def edit(issue_id: str, assignments: tuple[str, ...], as_json: bool) -> None:
    """Edit issue fields, e.g. --set severity=3 --set tags=bug,auth."""
    patch: dict[str, Any] = {}
    for item in assignments:
        if "=" not in item:
            fail(f"Invalid field format: {item} (expected key=value)", as_json=as_json)
        key, raw = item.split("=", 1)
        if key not in EDITABLE_FIELDS:
            fail(f"Field is not editable: {key}", as_json=as_json)
        # Free-text fields are never reinterpreted as JSON.
        if key in ("title", "assignee", "description"):
            patch[key] = raw
        elif key == "tags" and not raw.startswith("["):
            patch[key] = [t.strip() for t in raw.split(",") if t.strip()]
        else:
            patch[key] = _parse_value(raw)

    boardsync_dir = get_boardsync_dir()

    async def _run() -> None:
        async with open_session(boardsync_dir, require_remote=True) as session:
            try:
                outcome = await session.edit(issue_id, patch)
            except ValueError as e:
                raise CommandError(str(e)) from e
            save_last_action(boardsync_dir, session)
            _report_mutation(session, issue_id, outcome, as_json)

    run_async(_run(), as_json=as_json)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def undo(as_json: bool) -> None:
    """Revert the last move or edit while its undo window is open."""
    boardsync_dir = get_boardsync_dir()
    action = load_last_action(boardsync_dir)
    clear_last_action(boardsync_dir)

    async def _run() -> None:
        if action is None:
            raise CommandError("Nothing to undo")
        async with open_session(boardsync_dir, require_remote=True) as session:
            left = time_left_ms(action, session.store.clock())
            session.store.set_undoable_action(action)
            if not await session.undo():
                raise CommandError("Nothing to undo (the undo window has closed)" if left == 0 else "Undo not permitted")
            if session.store.error:
                raise CommandError(session.store.error)
            restored = action.previous_state
            if as_json:
                click.echo(json_mod.dumps({"undone": True, "issue": restored.to_dict()}, indent=2))
            else:
                click.echo(f"Reverted {restored.id}: {restored.title} [{restored.status}]")

    run_async(_run(), as_json=as_json)
