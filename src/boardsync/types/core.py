"""Foundational TypedDicts for dataclass to_dict() returns and config files."""

from __future__ import annotations

from typing import NotRequired, TypedDict


class ProjectConfig(TypedDict, total=False):
    """Shape of .boardsync/config.json."""

    polling_interval: int
    page_size: int
    user: str
    remote_url: str | None
    success_rate: float
    api_delay_ms: int


class IssueDict(TypedDict):
    """Wire shape of a single issue (camelCase keys, as served by the remote store)."""

    id: str
    title: str
    status: str
    priority: str
    severity: int
    createdAt: str
    assignee: str
    tags: list[str]
    userDefinedRank: NotRequired[int]
    description: NotRequired[str]


class IssuePatch(TypedDict, total=False):
    """Partial update accepted by the remote store. Never carries ``id`` or ``createdAt``."""

    status: str
    priority: str
    severity: int
    assignee: str
    userDefinedRank: int | None
    title: str
    tags: list[str]
    description: str | None


class FilterDict(TypedDict):
    search: str
    assignee: str
    severity: int | None


class UndoDict(TypedDict):
    issueId: str
    previousState: IssueDict
    newState: IssueDict
    timestamp: str
    timeLeftMs: int
