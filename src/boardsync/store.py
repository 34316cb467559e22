"""Observable canonical state for the board.

``IssueStore`` owns the canonical issue collection and every piece of state
derived from it. Only the mutation engine and the sync scheduler write to
it; everything else reads immutable ``BoardState`` snapshots or subscribes
to be notified when a new one is available.

Invariants maintained on every write:

- ``issues`` is always the output of ``scoring.order`` over its contents.
- ``filtered_issues`` is always a full recompute of the filter pipeline
  over ``issues`` with the current ``filters``.

Writes grouped under ``batch()`` produce a single notification, so no
subscriber can observe a half-applied change (e.g. an edit that is
written but not yet reordered).
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from boardsync.core import DEFAULT_PAGE_SIZE, DEFAULT_POLLING_INTERVAL_MS, Issue, now_utc
from boardsync.filters import FilterSpec, apply_filters
from boardsync.pagination import BoardPage, paginate_board
from boardsync.scoring import order
from boardsync.undo import UndoableAction

logger = logging.getLogger(__name__)

Subscriber = Callable[["BoardState"], None]


@dataclass(frozen=True)
class BoardState:
    """Read-only snapshot handed to presentation layers."""

    issues: tuple[Issue, ...]
    filtered_issues: tuple[Issue, ...]
    filters: FilterSpec
    loading: bool
    error: str | None
    last_sync: datetime | None
    undoable_action: UndoableAction | None
    polling_interval: int
    current_page: int
    page_size: int


class IssueStore:
    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = now_utc,
        filters: FilterSpec | None = None,
        polling_interval: int = DEFAULT_POLLING_INTERVAL_MS,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            msg = f"page_size must be >= 1, got {page_size}"
            raise ValueError(msg)
        self.clock = clock
        self._issues: list[Issue] = []
        self._filtered: list[Issue] = []
        self._filters = filters or FilterSpec()
        self._loading = False
        self._error: str | None = None
        self._last_sync: datetime | None = None
        self._undoable_action: UndoableAction | None = None
        self._polling_interval = polling_interval
        self._current_page = 1
        self._page_size = page_size
        self._subscribers: list[Subscriber] = []
        self._batch_depth = 0
        self._dirty = False

    # -- read side -----------------------------------------------------------

    @property
    def issues(self) -> tuple[Issue, ...]:
        return tuple(self._issues)

    @property
    def filtered_issues(self) -> tuple[Issue, ...]:
        return tuple(self._filtered)

    @property
    def filters(self) -> FilterSpec:
        return self._filters

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def last_sync(self) -> datetime | None:
        return self._last_sync

    @property
    def undoable_action(self) -> UndoableAction | None:
        return self._undoable_action

    @property
    def polling_interval(self) -> int:
        return self._polling_interval

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_size(self) -> int:
        return self._page_size

    def get(self, issue_id: str) -> Issue | None:
        for issue in self._issues:
            if issue.id == issue_id:
                return issue
        return None

    def snapshot(self) -> BoardState:
        return BoardState(
            issues=tuple(self._issues),
            filtered_issues=tuple(self._filtered),
            filters=self._filters,
            loading=self._loading,
            error=self._error,
            last_sync=self._last_sync,
            undoable_action=self._undoable_action,
            polling_interval=self._polling_interval,
            current_page=self._current_page,
            page_size=self._page_size,
        )

    def board_page(self) -> BoardPage:
        return paginate_board(self._filtered, self._current_page, self._page_size)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for new snapshots. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(callback)

        return _unsubscribe

    # -- write side (mutation engine / sync scheduler only) ------------------

    @contextlib.contextmanager
    def batch(self) -> Iterator[None]:
        """Group writes so subscribers see one consistent snapshot at the end."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._notify()

    def replace_all(self, issues: Iterable[Issue]) -> None:
        self._issues = order(issues, self.clock())
        self._refilter()

    def put(self, issue: Issue) -> bool:
        """Replace the issue with the same id. Returns False (no change) if it is absent."""
        for index, current in enumerate(self._issues):
            if current.id == issue.id:
                updated = list(self._issues)
                updated[index] = issue
                self._issues = order(updated, self.clock())
                self._refilter()
                return True
        return False

    def set_undoable_action(self, action: UndoableAction | None) -> None:
        self._undoable_action = action
        self._changed()

    def set_loading(self, loading: bool) -> None:
        self._loading = loading
        self._changed()

    def set_error(self, message: str | None) -> None:
        self._error = message
        self._changed()

    def set_last_sync(self, when: datetime) -> None:
        self._last_sync = when
        self._changed()

    def set_filters(self, spec: FilterSpec) -> None:
        """Apply a new filter spec and go back to the first page."""
        self._filters = spec
        self._current_page = 1
        self._refilter()

    def set_page(self, page: int) -> None:
        if page < 1:
            msg = f"page must be >= 1, got {page}"
            raise ValueError(msg)
        self._current_page = page
        self._changed()

    def set_polling_interval(self, interval_ms: int) -> None:
        self._polling_interval = interval_ms
        self._changed()

    # -- internals -----------------------------------------------------------

    def _refilter(self) -> None:
        self._filtered = apply_filters(self._issues, self._filters)
        self._changed()

    def _changed(self) -> None:
        if self._batch_depth:
            self._dirty = True
            return
        self._notify()

    def _notify(self) -> None:
        self._dirty = False
        state = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Board subscriber %r failed", callback)
