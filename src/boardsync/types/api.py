"""TypedDicts for board API responses."""

from __future__ import annotations

from typing import Literal, TypedDict

from boardsync.types.core import FilterDict, IssueDict, UndoDict


class ErrorDetail(TypedDict):
    message: str
    code: str
    details: dict[str, object]


class ErrorResponse(TypedDict):
    """Standard error envelope returned by HTTP error paths."""

    error: ErrorDetail


class BoardColumnDict(TypedDict):
    status: str
    issues: list[IssueDict]
    totalIssues: int
    totalPages: int


class BoardResponse(TypedDict):
    """Paginated board view plus the engine state a board header renders."""

    columns: list[BoardColumnDict]
    page: int
    pageSize: int
    totalPages: int
    filters: FilterDict
    hasActiveFilters: bool
    assignees: list[str]
    loading: bool
    error: str | None
    lastSync: str | None
    undo: UndoDict | None
    canEdit: bool


class MutationResponse(TypedDict):
    outcome: Literal["ignored", "rejected", "confirmed", "rolled_back"]
    issue: IssueDict | None
    error: str | None
