"""Tests for the authorization context."""

from __future__ import annotations

import pytest

from boardsync.auth import AVAILABLE_USERS, DEFAULT_USER, Action, AuthContext, User, resolve_user


class TestAuthContext:
    def test_admin_can_edit(self) -> None:
        ctx = AuthContext(User(name="Alice", role="admin"))
        assert ctx.can_perform(Action.EDIT)
        assert ctx.can_edit

    def test_contributor_can_only_view(self) -> None:
        ctx = AuthContext(User(name="Bob", role="contributor"))
        assert ctx.can_perform(Action.VIEW)
        assert not ctx.can_perform(Action.EDIT)
        assert not ctx.can_edit

    def test_default_user_is_admin(self) -> None:
        assert AuthContext().user == DEFAULT_USER
        assert DEFAULT_USER.role == "admin"

    def test_repr_names_user_and_role(self) -> None:
        assert repr(AuthContext()) == "AuthContext(user='Alice', role='admin')"


class TestResolveUser:
    def test_known_users(self) -> None:
        assert [resolve_user(u.name) for u in AVAILABLE_USERS] == list(AVAILABLE_USERS)

    def test_unknown_user_raises(self) -> None:
        with pytest.raises(KeyError):
            resolve_user("Mallory")
