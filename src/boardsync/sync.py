"""Sync scheduler: periodic full refresh of the canonical collection.

Activation fetches immediately, then a tick task fires one refresh every
``interval_ms`` while enabled. Changing the interval or toggling polling
cancels the pending tick and starts a fresh one, so a change never fires
twice. Refreshes run as their own tasks, like a timer callback: a slow
fetch never delays the next tick, and cancelling a tick never cancels a
fetch that is already in flight.

A refresh replaces the whole collection with what the remote reports,
including issues with an edit still in flight ("server wins").
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from time import perf_counter

from boardsync.remote import RemoteError, RemoteSource
from boardsync.store import IssueStore

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch issues"


class SyncScheduler:
    def __init__(
        self,
        store: IssueStore,
        remote: RemoteSource,
        *,
        interval_ms: int | None = None,
        enabled: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        interval = store.polling_interval if interval_ms is None else interval_ms
        if interval <= 0:
            msg = f"interval_ms must be positive, got {interval}"
            raise ValueError(msg)
        self._store = store
        self._remote = remote
        self._interval_ms = interval
        self._enabled = enabled
        self._sleep = sleep
        self._active = False
        self._tick_task: asyncio.Task[None] | None = None
        self._refreshes: set[asyncio.Task[bool]] = set()

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active(self) -> bool:
        return self._active

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Activate polling: fetch now, then on every tick. Idempotent."""
        if self._active:
            return
        self._active = True
        if self._enabled:
            self._spawn_refresh()
        self._reschedule()

    def stop(self) -> None:
        self._active = False
        self._cancel_tick()
        for task in list(self._refreshes):
            task.cancel()

    async def aclose(self) -> None:
        tasks = [t for t in (self._tick_task, *self._refreshes) if t is not None]
        self.stop()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # -- configuration -------------------------------------------------------

    def set_interval(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            msg = f"interval_ms must be positive, got {interval_ms}"
            raise ValueError(msg)
        self._store.set_polling_interval(interval_ms)
        if interval_ms == self._interval_ms:
            return
        self._interval_ms = interval_ms
        logger.info("Polling interval set to %d ms", interval_ms)
        self._reschedule()

    def set_enabled(self, enabled: bool) -> None:
        if enabled == self._enabled:
            return
        self._enabled = enabled
        self._reschedule()

    # -- refresh -------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch the full issue set and replace the canonical collection.

        Returns False when the fetch failed or returned issues that cannot be
        ordered; the collection is left untouched and the error is surfaced
        through the store. ``loading`` is cleared on every exit path.
        """
        started = perf_counter()
        with self._store.batch():
            self._store.set_loading(True)
            self._store.set_error(None)
        try:
            issues = await self._remote.fetch_all()
            with self._store.batch():
                self._store.replace_all(issues)
                self._store.set_last_sync(self._store.clock())
                self._store.set_loading(False)
        except (RemoteError, ValueError) as exc:
            with self._store.batch():
                self._store.set_error(FETCH_FAILED_MESSAGE)
                self._store.set_loading(False)
            logger.warning("Refresh failed: %s", exc, extra={"action": "refresh", "error": str(exc)})
            return False
        finally:
            if self._store.loading:
                self._store.set_loading(False)
        logger.info(
            "Synced %d issues",
            len(issues),
            extra={"action": "refresh", "duration_ms": round((perf_counter() - started) * 1000, 1)},
        )
        return True

    # -- internals -----------------------------------------------------------

    def _cancel_tick(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is not None and not task.done():
            task.cancel()

    def _reschedule(self) -> None:
        self._cancel_tick()
        if self._active and self._enabled:
            self._tick_task = asyncio.get_running_loop().create_task(self._tick_loop(self._interval_ms))

    async def _tick_loop(self, interval_ms: int) -> None:
        while True:
            await self._sleep(interval_ms / 1000)
            self._spawn_refresh()

    def _spawn_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._refreshes.add(task)
        task.add_done_callback(self._on_refresh_done)

    def _on_refresh_done(self, task: asyncio.Task[bool]) -> None:
        self._refreshes.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Refresh task crashed", exc_info=exc)
