"""Shared pytest fixtures for boardsync tests.

Time never passes on its own in these tests: every engine component is
built with ``ManualClock.now`` and ``ManualClock.sleep``, and a test moves
time forward explicitly with ``await clock.advance(ms)``.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
import os
from collections.abc import AsyncIterator, Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from boardsync.auth import AuthContext
from boardsync.core import Issue
from boardsync.remote import FetchFailedError, UpdateFailedError
from boardsync.session import BoardSession
from boardsync.store import IssueStore
from boardsync.types.core import IssuePatch

START = datetime(2025, 12, 1, tzinfo=UTC)


class ManualClock:
    """Deterministic clock plus an ``asyncio.sleep`` replacement driven by ``advance()``."""

    def __init__(self, start: datetime = START) -> None:
        self._now = start
        self._sleepers: list[tuple[datetime, int, asyncio.Future[None]]] = []
        self._seq = 0

    def now(self) -> datetime:
        return self._now

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._seq += 1
        heapq.heappush(self._sleepers, (self._now + timedelta(seconds=seconds), self._seq, fut))
        await fut

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, _, fut in self._sleepers if not fut.done())

    async def settle(self) -> None:
        """Let every runnable task proceed until it blocks again."""
        for _ in range(20):
            await asyncio.sleep(0)

    async def advance(self, ms: float) -> None:
        """Move time forward by *ms*, waking sleepers in deadline order."""
        target = self._now + timedelta(milliseconds=ms)
        await self.settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            when, _, fut = heapq.heappop(self._sleepers)
            if fut.done():
                continue
            self._now = max(self._now, when)
            fut.set_result(None)
            await self.settle()
        self._now = target
        await self.settle()


class FakeRemote:
    """Scriptable remote store that records every call.

    Set ``update_gate`` to an unset ``asyncio.Event`` to hold updates in
    flight; ``fail_updates``, ``fail_if`` and ``fail_fetch`` are read when
    the call resolves.
    """

    def __init__(self, issues: list[Issue] | None = None) -> None:
        self.issues: dict[str, Issue] = {i.id: i for i in issues or []}
        self.fetch_calls = 0
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.fail_updates = False
        self.fail_fetch = False
        self.fail_if: Callable[[str, dict[str, Any]], bool] | None = None
        self.update_gate: asyncio.Event | None = None

    async def fetch_all(self) -> list[Issue]:
        self.fetch_calls += 1
        if self.fail_fetch:
            raise FetchFailedError
        return list(self.issues.values())

    async def update(self, issue_id: str, patch: IssuePatch) -> dict[str, Any]:
        self.updates.append((issue_id, dict(patch)))
        if self.update_gate is not None:
            await self.update_gate.wait()
        if self.fail_updates or (self.fail_if is not None and self.fail_if(issue_id, dict(patch))):
            raise UpdateFailedError
        if issue_id in self.issues:
            self.issues[issue_id] = self.issues[issue_id].merged(patch)
        return {"id": issue_id, **patch}


def make_issue(issue_id: str, **overrides: Any) -> Issue:
    """Build an Issue with sensible defaults; keyword overrides use attribute names."""
    fields: dict[str, Any] = {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "status": "Backlog",
        "priority": "medium",
        "severity": 2,
        "created_at": "2025-11-30T00:00:00Z",
        "assignee": "alice",
        "tags": (),
    }
    fields.update(overrides)
    if isinstance(fields["tags"], list):
        fields["tags"] = tuple(fields["tags"])
    return Issue(**fields)


def default_issues() -> list[Issue]:
    return [
        make_issue("1", title="Login crash", severity=3, tags=("bug", "auth"), user_defined_rank=5),
        make_issue("2", title="Dark mode", severity=1, assignee="bob", tags=("feature",)),
        make_issue("3", title="Polling drops updates", status="In Progress", severity=3, assignee="carol"),
        make_issue("4", title="Docs typo", status="Done", severity=1, assignee="bob"),
    ]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote(default_issues())


@pytest.fixture
def store(clock: ManualClock) -> IssueStore:
    return IssueStore(clock=clock.now)


@pytest.fixture
async def session(remote: FakeRemote, clock: ManualClock) -> AsyncIterator[BoardSession]:
    """Admin session with the default issues already loaded."""
    s = BoardSession(remote, AuthContext(), clock=clock.now, sleep=clock.sleep)
    assert await s.refresh()
    yield s
    await s.aclose()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def in_tmp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Run the test with tmp_path as the working directory."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    yield tmp_path
    os.chdir(original_cwd)


@pytest.fixture(autouse=True)
def _reset_boardsync_logger() -> Generator[None, None, None]:
    """Drop file handlers installed by setup_logging() during a test."""
    yield
    logger = logging.getLogger("boardsync")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
