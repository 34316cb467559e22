"""Board session: the engine wiring a board view talks to.

Composes the store, the mutation engine, the sync scheduler, the
authorization context and a remote backend. Both the HTTP board API and
the CLI drive the engine exclusively through a ``BoardSession``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from boardsync.auth import AuthContext, resolve_user
from boardsync.core import (
    API_DELAY_MS,
    API_SUCCESS_RATE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_POLLING_INTERVAL_MS,
    Issue,
    now_utc,
)
from boardsync.filters import FilterSpec, assignee_options, has_active_filters
from boardsync.mutations import MutationEngine, MutationOutcome
from boardsync.pagination import BoardPage
from boardsync.remote import HttpRemote, InMemoryRemote, RemoteSource
from boardsync.store import IssueStore
from boardsync.sync import SyncScheduler
from boardsync.types.api import BoardColumnDict, BoardResponse
from boardsync.types.core import ProjectConfig
from boardsync.validation import validate_polling_interval

logger = logging.getLogger(__name__)


class BoardSession:
    def __init__(
        self,
        remote: RemoteSource,
        auth: AuthContext | None = None,
        *,
        clock: Callable[[], datetime] = now_utc,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        polling_interval: int = DEFAULT_POLLING_INTERVAL_MS,
        page_size: int = DEFAULT_PAGE_SIZE,
        polling_enabled: bool = True,
        on_undo_tick: Callable[[int], None] | None = None,
    ) -> None:
        self.remote = remote
        self.auth = auth or AuthContext()
        self.store = IssueStore(clock=clock, polling_interval=polling_interval, page_size=page_size)
        self.engine = MutationEngine(self.store, remote, self.auth, on_undo_tick=on_undo_tick, sleep=sleep)
        self.scheduler = SyncScheduler(self.store, remote, enabled=polling_enabled, sleep=sleep)
        self._owns_remote = False

    @classmethod
    def from_config(cls, config: ProjectConfig, **kwargs: Any) -> BoardSession:
        """Build a session from .boardsync/config.json values.

        Raises ``KeyError`` for an unknown configured user.
        """
        auth = AuthContext(resolve_user(config.get("user", "Alice")))
        remote_url = config.get("remote_url")
        remote: RemoteSource
        if remote_url:
            remote = HttpRemote(remote_url)
        else:
            remote = InMemoryRemote(
                delay_ms=config.get("api_delay_ms", API_DELAY_MS),
                success_rate=config.get("success_rate", API_SUCCESS_RATE),
            )
        session = cls(
            remote,
            auth,
            polling_interval=config.get("polling_interval", DEFAULT_POLLING_INTERVAL_MS),
            page_size=config.get("page_size", DEFAULT_PAGE_SIZE),
            **kwargs,
        )
        session._owns_remote = True
        return session

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        self.scheduler.start()

    async def aclose(self) -> None:
        await self.scheduler.aclose()
        await self.engine.aclose()
        if self._owns_remote and isinstance(self.remote, HttpRemote):
            await self.remote.aclose()

    async def __aenter__(self) -> BoardSession:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # -- reads ---------------------------------------------------------------

    def board(self) -> BoardPage:
        return self.store.board_page()

    def get_issue(self, issue_id: str) -> Issue | None:
        return self.store.get(issue_id)

    def to_response(self) -> BoardResponse:
        page = self.board()
        state = self.store.snapshot()
        now = self.store.clock()
        columns = [
            BoardColumnDict(
                status=col.status,
                issues=[i.to_dict() for i in col.items],
                totalIssues=col.total_issues,
                totalPages=col.total_pages,
            )
            for col in page.columns
        ]
        return BoardResponse(
            columns=columns,
            page=page.page,
            pageSize=page.page_size,
            totalPages=page.total_pages,
            filters=state.filters.to_dict(),
            hasActiveFilters=has_active_filters(state.filters),
            assignees=assignee_options(state.issues),
            loading=state.loading,
            error=state.error,
            lastSync=state.last_sync.isoformat() if state.last_sync else None,
            undo=state.undoable_action.to_dict(now) if state.undoable_action else None,
            canEdit=self.auth.can_edit,
        )

    # -- view state ----------------------------------------------------------

    def set_filters(self, **changes: Any) -> FilterSpec:
        """Merge *changes* into the current filters and return to page 1."""
        spec = self.store.filters.updated(**changes)
        self.store.set_filters(spec)
        return spec

    def reset_filters(self) -> None:
        self.store.set_filters(FilterSpec())

    def set_page(self, page: int) -> None:
        self.store.set_page(page)

    def clear_error(self) -> None:
        self.store.set_error(None)

    def set_polling_interval(self, interval_ms: Any) -> int:
        cleaned, err = validate_polling_interval(interval_ms)
        if err:
            raise ValueError(err)
        self.scheduler.set_interval(cleaned)
        return cleaned

    # -- engine operations ---------------------------------------------------

    async def refresh(self) -> bool:
        return await self.scheduler.refresh()

    async def move(self, issue_id: str, status: str) -> MutationOutcome:
        return await self.engine.set_status(issue_id, status)

    async def edit(self, issue_id: str, patch: dict[str, Any]) -> MutationOutcome:
        return await self.engine.apply_edit(issue_id, patch)

    async def undo(self) -> bool:
        return await self.engine.undo()
