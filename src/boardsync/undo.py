"""Single-slot undo record and its countdown.

The remaining time is a pure function of ``(timestamp, now)``. ``UndoTimer``
only polls that function and fires ``on_expire`` once the window has
elapsed; it never touches the issue collection.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from boardsync.core import UNDO_TICK_MS, UNDO_TIMEOUT_MS, Issue, parse_timestamp
from boardsync.types.core import UndoDict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoableAction:
    issue_id: str
    previous_state: Issue
    new_state: Issue
    timestamp: datetime

    def to_dict(self, now: datetime) -> UndoDict:
        return UndoDict(
            issueId=self.issue_id,
            previousState=self.previous_state.to_dict(),
            newState=self.new_state.to_dict(),
            timestamp=self.timestamp.isoformat(),
            timeLeftMs=time_left_ms(self, now),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UndoableAction:
        """Rebuild from ``to_dict()`` output. ``timeLeftMs`` is ignored and recomputed."""
        try:
            return cls(
                issue_id=str(data["issueId"]),
                previous_state=Issue.from_dict(data["previousState"]),
                new_state=Issue.from_dict(data["newState"]),
                timestamp=parse_timestamp(data["timestamp"]),
            )
        except (KeyError, TypeError) as exc:
            msg = f"Invalid undo record: {exc}"
            raise ValueError(msg) from exc


def time_left_ms(action: UndoableAction, now: datetime, timeout_ms: int = UNDO_TIMEOUT_MS) -> int:
    elapsed_ms = (now - action.timestamp).total_seconds() * 1000
    return max(0, math.ceil(timeout_ms - elapsed_ms))


def is_expired(action: UndoableAction, now: datetime, timeout_ms: int = UNDO_TIMEOUT_MS) -> bool:
    return time_left_ms(action, now, timeout_ms) == 0


class UndoTimer:
    """Periodic tick that expires the pending undo action.

    ``start()`` replaces any running countdown; ``cancel()`` stops it. Must be
    driven from a running event loop.
    """

    def __init__(
        self,
        clock: Callable[[], datetime],
        on_expire: Callable[[UndoableAction], None],
        *,
        on_tick: Callable[[int], None] | None = None,
        timeout_ms: int = UNDO_TIMEOUT_MS,
        tick_ms: int = UNDO_TICK_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._timeout_ms = timeout_ms
        self._tick_ms = tick_ms
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, action: UndoableAction) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(action))

    def cancel(self) -> None:
        task, self._task = self._task, None
        # A timer cancelled from inside its own on_expire callback must not cancel itself.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def aclose(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, action: UndoableAction) -> None:
        while True:
            remaining = time_left_ms(action, self._clock(), self._timeout_ms)
            if remaining == 0:
                logger.debug("Undo window expired for %s", action.issue_id)
                self._on_expire(action)
                return
            if self._on_tick is not None:
                self._on_tick(remaining)
            await self._sleep(min(self._tick_ms, remaining) / 1000)
