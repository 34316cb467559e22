"""Shared CLI helpers used by ``cli.py`` and ``cli_commands/*.py``.

Provides ``get_boardsync_dir()``, ``open_session()`` and the last-action
record so that command modules can reach them without circular imports.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sys
from collections.abc import AsyncIterator, Coroutine
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from boardsync.core import (
    BOARDSYNC_DIR_NAME,
    LAST_ACTION_FILENAME,
    find_boardsync_root,
    read_config,
    write_atomic,
)
from boardsync.logging import setup_logging
from boardsync.session import BoardSession
from boardsync.undo import UndoableAction

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_boardsync_dir() -> Path:
    """Discover .boardsync/ or exit with a hint to run ``init``."""
    try:
        boardsync_dir = find_boardsync_root()
    except FileNotFoundError:
        click.echo(f"No {BOARDSYNC_DIR_NAME}/ found. Run 'boardsync init' first.", err=True)
        sys.exit(1)
    setup_logging(boardsync_dir)
    return boardsync_dir


class CommandError(Exception):
    """A command cannot complete; reported by ``run_async`` as ``Error: ...``."""


def fail(message: str, *, as_json: bool = False) -> NoReturn:
    """Report *message* in the requested format and exit 1."""
    if as_json:
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def run_async(coro: Coroutine[Any, Any, T], *, as_json: bool = False) -> T:
    """Drive *coro* to completion, turning ``CommandError`` into exit status 1."""
    try:
        return asyncio.run(coro)
    except CommandError as e:
        fail(str(e), as_json=as_json)


NO_REMOTE_MESSAGE = (
    "No remote_url configured; changes to the in-process store are lost when the command exits. "
    "Start a shared store with 'boardsync serve-remote' and point at it with "
    "'boardsync config --remote-url http://127.0.0.1:8378'"
)


@contextlib.asynccontextmanager
async def open_session(boardsync_dir: Path, *, require_remote: bool = False) -> AsyncIterator[BoardSession]:
    """Build a session from the project config and load the issue set once.

    Polling stays off: a CLI invocation is a single fetch-act-exit cycle.
    With *require_remote*, a project without ``remote_url`` is refused since
    the in-process store does not outlive the invocation.
    """
    config = read_config(boardsync_dir)
    if require_remote and not config.get("remote_url"):
        raise CommandError(NO_REMOTE_MESSAGE)
    try:
        session = BoardSession.from_config(config, polling_enabled=False)
    except KeyError as e:
        raise CommandError(f"Unknown user: {config.get('user')}") from e
    async with session:
        if not await session.refresh():
            raise CommandError(session.store.error or "Failed to fetch issues")
        yield session


# ---------------------------------------------------------------------------
# Last-action record (undo across invocations)
# ---------------------------------------------------------------------------


def save_last_action(boardsync_dir: Path, session: BoardSession) -> None:
    """Persist the session's pending undo action, if any."""
    action = session.store.undoable_action
    path = boardsync_dir / LAST_ACTION_FILENAME
    if action is None:
        clear_last_action(boardsync_dir)
        return
    write_atomic(path, json.dumps(action.to_dict(session.store.clock()), indent=2) + "\n")


def load_last_action(boardsync_dir: Path) -> UndoableAction | None:
    path = boardsync_dir / LAST_ACTION_FILENAME
    if not path.exists():
        return None
    try:
        return UndoableAction.from_dict(json.loads(path.read_text()))
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return None


def clear_last_action(boardsync_dir: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        (boardsync_dir / LAST_ACTION_FILENAME).unlink()
