"""Mutation engine: optimistic edits, single-slot undo, and rollback.

Each edit is a short-lived transaction over the canonical collection:

    Idle -> Pending (optimistic value applied, remote call in flight)
         -> Confirmed | RolledBack

Everything up to the remote call runs synchronously inside one
``IssueStore.batch()``, so subscribers never observe an edit that is
applied but not yet reordered or filtered. The remote call is the only
suspension point.

Rollback is scoped to its own transaction: it clears the undo slot only if
the slot still holds this transaction's action, and it restores the
previous state only if the canonical entry still shows this transaction's
optimistic value. A refresh or a later edit that replaced the entry in the
meantime wins.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from boardsync.auth import Action, Authorizer
from boardsync.core import UNDO_TIMEOUT_MS, Issue
from boardsync.remote import RemoteError, RemoteSource
from boardsync.store import IssueStore
from boardsync.undo import UndoableAction, UndoTimer, is_expired, time_left_ms
from boardsync.validation import validate_patch

logger = logging.getLogger(__name__)

UPDATE_FAILED_MESSAGE = "Failed to update issue"
UNDO_FAILED_MESSAGE = "Failed to undo action"


class MutationOutcome(enum.Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class MutationEngine:
    def __init__(
        self,
        store: IssueStore,
        remote: RemoteSource,
        authorizer: Authorizer,
        *,
        undo_timeout_ms: int = UNDO_TIMEOUT_MS,
        on_undo_tick: Callable[[int], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._remote = remote
        self._auth = authorizer
        self._undo_timeout_ms = undo_timeout_ms
        self._timer = UndoTimer(
            store.clock,
            self._expire,
            on_tick=on_undo_tick,
            timeout_ms=undo_timeout_ms,
            sleep=sleep,
        )
        self.pending = 0

    # -- edits ---------------------------------------------------------------

    async def apply_edit(self, issue_id: str, patch: dict[str, Any], *, optimistic: bool = True) -> MutationOutcome:
        """Apply *patch* to an issue and persist it remotely.

        Unknown ids are ignored. An invalid patch raises ``ValueError`` before
        any state changes. Remote failure rolls the edit back and surfaces
        ``UPDATE_FAILED_MESSAGE`` through the store's error state.
        """
        if not self._auth.can_perform(Action.EDIT):
            logger.info("Edit of %s rejected: no edit capability", issue_id, extra={"issue_id": issue_id})
            return MutationOutcome.REJECTED

        previous = self._store.get(issue_id)
        if previous is None:
            logger.debug("Edit of unknown issue %s ignored", issue_id)
            return MutationOutcome.IGNORED

        cleaned, err = validate_patch(patch)
        if err:
            raise ValueError(err)
        new_state = previous.merged(cleaned)

        action: UndoableAction | None = None
        if optimistic:
            action = UndoableAction(
                issue_id=issue_id,
                previous_state=previous,
                new_state=new_state,
                timestamp=self._store.clock(),
            )
            with self._store.batch():
                self._store.put(new_state)
                self._store.set_undoable_action(action)
            self._timer.start(action)

        self.pending += 1
        started = perf_counter()
        try:
            await self._remote.update(issue_id, cleaned)
        except RemoteError as exc:
            self._rollback(previous, new_state, action, exc)
            return MutationOutcome.ROLLED_BACK
        finally:
            self.pending -= 1

        if not optimistic:
            self._store.put(new_state)
        logger.info(
            "Confirmed edit of %s",
            issue_id,
            extra={"issue_id": issue_id, "action": "edit", "duration_ms": round((perf_counter() - started) * 1000, 1)},
        )
        return MutationOutcome.CONFIRMED

    async def set_status(self, issue_id: str, status: str) -> MutationOutcome:
        """Move an issue to another board column."""
        return await self.apply_edit(issue_id, {"status": status})

    def _rollback(
        self,
        previous: Issue,
        new_state: Issue,
        action: UndoableAction | None,
        exc: RemoteError,
    ) -> None:
        issue_id = previous.id
        with self._store.batch():
            current = self._store.get(issue_id)
            if current is not None and current == new_state:
                self._store.put(previous)
            else:
                logger.info("Rollback of %s skipped: entry superseded since the edit", issue_id)
            if action is not None and self._owns_undo_slot(action):
                self._store.set_undoable_action(None)
                self._timer.cancel()
            self._store.set_error(UPDATE_FAILED_MESSAGE)
        logger.warning(
            "Rolled back edit of %s",
            issue_id,
            extra={"issue_id": issue_id, "action": "rollback", "error": str(exc)},
        )

    def _owns_undo_slot(self, action: UndoableAction) -> bool:
        # Full equality: two edits of one issue can share a timestamp but never both states.
        return self._store.undoable_action == action

    # -- undo ----------------------------------------------------------------

    def undo_time_left(self) -> int | None:
        """Milliseconds left to undo the pending action, or None if there is none."""
        action = self._store.undoable_action
        if action is None:
            return None
        return time_left_ms(action, self._store.clock(), self._undo_timeout_ms)

    async def undo(self) -> bool:
        """Restore the pending action's previous state. Returns False when there is nothing to undo."""
        action = self._store.undoable_action
        if action is None:
            return False
        if not self._auth.can_perform(Action.EDIT):
            logger.info("Undo rejected: no edit capability")
            return False
        if is_expired(action, self._store.clock(), self._undo_timeout_ms):
            self._expire(action)
            self._timer.cancel()
            return False

        with self._store.batch():
            self._store.put(action.previous_state)
            self._store.set_undoable_action(None)
        self._timer.cancel()
        logger.info("Undid edit of %s", action.issue_id, extra={"issue_id": action.issue_id, "action": "undo"})

        try:
            await self._remote.update(action.issue_id, action.previous_state.to_patch())
        except RemoteError as exc:
            logger.warning(
                "Failed to persist undo of %s",
                action.issue_id,
                extra={"issue_id": action.issue_id, "action": "undo", "error": str(exc)},
            )
            self._store.set_error(UNDO_FAILED_MESSAGE)
        return True

    def _expire(self, action: UndoableAction) -> None:
        # Only the undo affordance goes away; the edit itself stays applied.
        if self._owns_undo_slot(action):
            self._store.set_undoable_action(None)

    async def aclose(self) -> None:
        await self._timer.aclose()
