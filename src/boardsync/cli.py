"""CLI for the boardsync issue board.

Convention-based: discovers .boardsync/ by walking up from cwd.

Usage:
    boardsync init                               # Initialize .boardsync/ in cwd
    boardsync board --search login --page 2      # Show the ordered board
    boardsync show <id>                          # Show issue details
    boardsync move <id> "In Progress"            # Move an issue between columns
    boardsync edit <id> --set severity=3         # Edit issue fields
    boardsync undo                               # Revert the last edit (5s window)
    boardsync config --polling-interval 30000    # Show or change settings
    boardsync dashboard                          # Serve the board API
    boardsync serve-remote                       # Serve an in-memory remote store
"""

from __future__ import annotations

import click

from boardsync import __version__
from boardsync.cli_commands.admin import config_cmd, dashboard, init, serve_remote
from boardsync.cli_commands.issues import board, edit, move, show, undo


@click.group()
@click.version_option(version=__version__, prog_name="boardsync")
def cli() -> None:
    """boardsync: priority-ordered issue board with optimistic sync."""


for _command in (init, board, show, move, edit, undo, config_cmd, dashboard, serve_remote):
    cli.add_command(_command)
