"""Authorization context consulted before every mutating entry point.

The engine never reads an ambient "current user": callers construct an
``AuthContext`` and inject it. Viewing is open to every role; editing the
board (drag, field edits, undo) requires the ``admin`` role.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Literal, Protocol

UserRole = Literal["admin", "contributor"]


class Action(enum.Enum):
    VIEW = "view"
    EDIT = "edit"


@dataclass(frozen=True)
class User:
    name: str
    role: UserRole


AVAILABLE_USERS: tuple[User, ...] = (
    User(name="Alice", role="admin"),
    User(name="Bob", role="contributor"),
)
DEFAULT_USER = AVAILABLE_USERS[0]


class Authorizer(Protocol):
    def can_perform(self, action: Action) -> bool: ...


def resolve_user(name: str) -> User:
    """Look up a known user by name. Raises ``KeyError`` for unknown names."""
    for user in AVAILABLE_USERS:
        if user.name == name:
            return user
    raise KeyError(name)


class AuthContext:
    """Capability check for a single user."""

    def __init__(self, user: User = DEFAULT_USER) -> None:
        self.user = user

    def can_perform(self, action: Action) -> bool:
        if action is Action.VIEW:
            return True
        return self.user.role == "admin"

    @property
    def can_edit(self) -> bool:
        return self.can_perform(Action.EDIT)

    def __repr__(self) -> str:
        return f"AuthContext(user={self.user.name!r}, role={self.user.role!r})"
