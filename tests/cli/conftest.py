"""Fixtures for CLI interface tests."""

from __future__ import annotations

import json
import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from httpx import ASGITransport, AsyncClient

from boardsync.cli import cli
from boardsync.remote import HttpRemote, InMemoryRemote
from boardsync.remote_server import create_remote_app


@pytest.fixture
def cli_in_project(
    tmp_path: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a boardsync project in tmp_path and return (runner, project_root).

    The in-process remote runs without latency or injected failures.
    """
    monkeypatch.delenv("BOARDSYNC_USER", raising=False)
    monkeypatch.delenv("BOARDSYNC_REMOTE_URL", raising=False)
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init"])
    assert result.exit_code == 0
    _update_config(tmp_path, api_delay_ms=0, success_rate=1.0)
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


@pytest.fixture
def cli_with_remote(
    cli_in_project: tuple[CliRunner, Path], monkeypatch: pytest.MonkeyPatch
) -> tuple[CliRunner, Path, InMemoryRemote]:
    """Project configured with a remote_url that reaches one shared store.

    Every invocation's HttpRemote talks to the same remote-store app over
    ASGITransport, so changes outlive a single command.
    """
    runner, root = cli_in_project
    backing = InMemoryRemote(delay_ms=0, success_rate=1.0)
    app = create_remote_app(backing)

    class _SharedStoreRemote(HttpRemote):
        def __init__(self, base_url: str, **kwargs: Any) -> None:
            client = AsyncClient(transport=ASGITransport(app=app), base_url=base_url)
            super().__init__(base_url, client=client)
            self._owns_client = True

    monkeypatch.setattr("boardsync.session.HttpRemote", _SharedStoreRemote)
    _update_config(root, remote_url="http://remote.test")
    return runner, root, backing


def _update_config(project_root: Path, **changes: object) -> None:
    config_path = project_root / ".boardsync" / "config.json"
    config = json.loads(config_path.read_text())
    config.update(changes)
    config_path.write_text(json.dumps(config, indent=2) + "\n")
