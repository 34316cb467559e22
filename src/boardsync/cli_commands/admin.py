"""CLI commands for project setup and servers: init, config, dashboard, serve-remote."""

from __future__ import annotations

import json as json_mod
from pathlib import Path

import click

from boardsync.auth import AVAILABLE_USERS
from boardsync.cli_common import fail, get_boardsync_dir
from boardsync.core import (
    BOARDSYNC_DIR_NAME,
    CONFIG_FILENAME,
    POLLING_OPTIONS_MS,
    default_config,
    read_config,
    write_config,
)
from boardsync.logging import setup_logging
from boardsync.validation import sanitize_user_name, validate_polling_interval

_USER_NAMES = tuple(u.name for u in AVAILABLE_USERS)


@click.command()
@click.option("--user", default=None, type=click.Choice(_USER_NAMES), help="Acting user (default: Alice)")
@click.option("--remote-url", default=None, help="Remote store URL (default: in-process store)")
def init(user: str | None, remote_url: str | None) -> None:
    """Initialize .boardsync/ in the current directory."""
    cwd = Path.cwd()
    boardsync_dir = cwd / BOARDSYNC_DIR_NAME

    if boardsync_dir.exists():
        click.echo(f"{BOARDSYNC_DIR_NAME}/ already exists in {cwd}")
        return

    boardsync_dir.mkdir()
    config = default_config()
    if user is not None:
        config["user"] = user
    if remote_url:
        config["remote_url"] = remote_url
    write_config(boardsync_dir, config)
    setup_logging(boardsync_dir).info("Initialized %s", boardsync_dir)

    click.echo(f"Initialized {BOARDSYNC_DIR_NAME}/ in {cwd}")
    click.echo(f"  User: {config['user']}")
    click.echo(f"  Remote: {config.get('remote_url') or 'in-process store'}")
    click.echo(f"  Config: {boardsync_dir / CONFIG_FILENAME}")
    click.echo("\nNext: boardsync board")


@click.command("config")
@click.option(
    "--polling-interval",
    default=None,
    type=int,
    help=f"Polling interval in ms ({', '.join(str(ms) for ms in POLLING_OPTIONS_MS)})",
)
@click.option("--user", default=None, help="Acting user")
@click.option("--remote-url", default=None, help="Remote store URL ('' for the in-process store)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_cmd(polling_interval: int | None, user: str | None, remote_url: str | None, as_json: bool) -> None:
    """Show or change project settings."""
    boardsync_dir = get_boardsync_dir()
    # Write back only the file's own keys so environment overrides never get persisted.
    config = read_config(boardsync_dir)
    changed: dict[str, object] = {}

    if polling_interval is not None:
        interval, err = validate_polling_interval(polling_interval)
        if err:
            fail(err, as_json=as_json)
        changed["polling_interval"] = interval
    if user is not None:
        name, err = sanitize_user_name(user)
        if err:
            fail(err, as_json=as_json)
        if name not in _USER_NAMES:
            fail(f"Unknown user: {name} (known: {', '.join(_USER_NAMES)})", as_json=as_json)
        changed["user"] = name
    if remote_url is not None:
        changed["remote_url"] = remote_url or None

    if changed:
        stored = _read_stored_config(boardsync_dir)
        stored.update(changed)
        write_config(boardsync_dir, stored)
        config.update(changed)  # type: ignore[typeddict-item]

    if as_json:
        click.echo(json_mod.dumps(config, indent=2))
        return
    for key, value in config.items():
        click.echo(f"{key}: {value}")


def _read_stored_config(boardsync_dir: Path) -> dict[str, object]:
    path = boardsync_dir / CONFIG_FILENAME
    try:
        loaded = json_mod.loads(path.read_text())
    except (json_mod.JSONDecodeError, OSError):
        return dict(default_config())
    return loaded if isinstance(loaded, dict) else dict(default_config())


@click.command()
@click.option("--port", default=8377, type=int, help="Server port (default 8377)")
@click.option("--host", default="127.0.0.1", help="Bind address (default 127.0.0.1)")
def dashboard(port: int, host: str) -> None:
    """Serve the board API for this project."""
    get_boardsync_dir()
    from boardsync.dashboard import main as dashboard_main

    dashboard_main(port=port, host=host)


@click.command("serve-remote")
@click.option("--port", default=8378, type=int, help="Server port (default 8378)")
@click.option("--host", default="127.0.0.1", help="Bind address (default 127.0.0.1)")
@click.option(
    "--success-rate",
    default=0.9,
    type=click.FloatRange(0.0, 1.0),
    help="Probability an update succeeds (default 0.9)",
)
@click.option("--delay-ms", default=500, type=click.IntRange(min=0), help="Latency per call in ms (default 500)")
def serve_remote(port: int, host: str, success_rate: float, delay_ms: int) -> None:
    """Serve an in-memory remote issue store over HTTP."""
    from boardsync.remote_server import main as remote_main

    remote_main(port=port, host=host, success_rate=success_rate, delay_ms=delay_ms)
