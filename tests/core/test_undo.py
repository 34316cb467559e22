"""Tests for the undo window: expiry timing, countdown ticks, and record round-trips."""

from __future__ import annotations

from datetime import timedelta

import pytest

from boardsync.auth import AuthContext
from boardsync.session import BoardSession
from boardsync.undo import UndoableAction, UndoTimer, is_expired, time_left_ms
from tests.conftest import START, FakeRemote, ManualClock, make_issue


def _action(at_ms: int = 0) -> UndoableAction:
    before = make_issue("1")
    return UndoableAction(
        issue_id="1",
        previous_state=before,
        new_state=before.merged({"status": "Done"}),
        timestamp=START + timedelta(milliseconds=at_ms),
    )


class TestTimeLeft:
    def test_counts_down_from_window(self) -> None:
        action = _action()
        assert time_left_ms(action, START) == 5000
        assert time_left_ms(action, START + timedelta(milliseconds=4999)) == 1
        assert time_left_ms(action, START + timedelta(milliseconds=5000)) == 0
        assert time_left_ms(action, START + timedelta(seconds=60)) == 0

    def test_partial_millisecond_is_not_expired(self) -> None:
        action = _action()
        assert not is_expired(action, START + timedelta(microseconds=4_999_500))
        assert is_expired(action, START + timedelta(milliseconds=5000))

    def test_custom_timeout(self) -> None:
        assert time_left_ms(_action(), START + timedelta(milliseconds=400), timeout_ms=1000) == 600


class TestUndoWindow:
    async def test_undo_at_4999ms_succeeds(self, session: BoardSession, clock: ManualClock) -> None:
        before = session.get_issue("2")
        await session.move("2", "Done")
        await clock.advance(4999)
        assert session.store.undoable_action is not None
        assert await session.undo() is True
        assert session.get_issue("2") == before

    async def test_undo_at_5001ms_is_a_no_op(
        self, session: BoardSession, clock: ManualClock, remote: FakeRemote
    ) -> None:
        await session.move("2", "Done")
        await clock.advance(5001)
        assert session.store.undoable_action is None
        calls = len(remote.updates)
        assert await session.undo() is False
        assert session.get_issue("2").status == "Done"
        assert len(remote.updates) == calls

    async def test_expiry_keeps_the_edit(self, session: BoardSession, clock: ManualClock) -> None:
        await session.move("2", "Done")
        await clock.advance(6000)
        assert session.get_issue("2").status == "Done"
        assert session.store.error is None

    async def test_new_edit_restarts_window(self, session: BoardSession, clock: ManualClock) -> None:
        await session.move("1", "Done")
        await clock.advance(3000)
        await session.move("2", "Done")
        await clock.advance(3000)
        action = session.store.undoable_action
        assert action is not None
        assert action.issue_id == "2"
        await clock.advance(2001)
        assert session.store.undoable_action is None

    async def test_stale_record_checked_at_call_time(self, session: BoardSession, clock: ManualClock) -> None:
        # A record loaded from elsewhere with no timer running.
        await clock.advance(10_000)
        session.store.set_undoable_action(_action(at_ms=0))
        assert await session.undo() is False
        assert session.store.undoable_action is None

    async def test_countdown_ticks(self, remote: FakeRemote, clock: ManualClock) -> None:
        ticks: list[int] = []
        async with BoardSession(remote, AuthContext(), clock=clock.now, sleep=clock.sleep, on_undo_tick=ticks.append) as s:
            await s.refresh()
            await s.move("2", "Done")
            await clock.advance(350)
        assert ticks == [5000, 4900, 4800, 4700]

    async def test_close_cancels_countdown(self, remote: FakeRemote, clock: ManualClock) -> None:
        s = BoardSession(remote, AuthContext(), clock=clock.now, sleep=clock.sleep)
        await s.refresh()
        await s.move("2", "Done")
        await clock.settle()
        assert clock.pending_sleepers == 1
        await s.aclose()
        assert clock.pending_sleepers == 0


class TestUndoTimer:
    async def test_fires_once_at_expiry(self, clock: ManualClock) -> None:
        expired: list[UndoableAction] = []
        timer = UndoTimer(clock.now, expired.append, sleep=clock.sleep)
        action = _action()
        timer.start(action)
        await clock.advance(4999)
        assert expired == []
        assert timer.running
        await clock.advance(1)
        assert expired == [action]
        assert not timer.running

    async def test_restart_replaces_countdown(self, clock: ManualClock) -> None:
        expired: list[UndoableAction] = []
        timer = UndoTimer(clock.now, expired.append, sleep=clock.sleep)
        first = _action()
        timer.start(first)
        await clock.advance(1000)
        second = _action(at_ms=1000)
        timer.start(second)
        await clock.advance(4500)
        assert expired == []
        await clock.advance(500)
        assert expired == [second]

    async def test_cancel(self, clock: ManualClock) -> None:
        expired: list[UndoableAction] = []
        timer = UndoTimer(clock.now, expired.append, sleep=clock.sleep)
        timer.start(_action())
        await clock.settle()
        timer.cancel()
        await clock.advance(6000)
        assert expired == []
        await timer.aclose()


class TestUndoableActionDict:
    def test_round_trip(self) -> None:
        action = _action(at_ms=250)
        data = action.to_dict(START + timedelta(milliseconds=1250))
        assert data["timeLeftMs"] == 4000
        assert data["issueId"] == "1"
        assert UndoableAction.from_dict(dict(data)) == action

    def test_rejects_incomplete_record(self) -> None:
        with pytest.raises(ValueError, match="Invalid undo record"):
            UndoableAction.from_dict({"issueId": "1"})
