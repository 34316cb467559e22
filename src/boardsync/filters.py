"""Filter specification and the pure filter pipeline over the canonical collection."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from boardsync.core import Issue
from boardsync.types.core import FilterDict


@dataclass(frozen=True)
class FilterSpec:
    """Board filters. Empty strings and ``None`` mean "any"."""

    search: str = ""
    assignee: str = ""
    severity: int | None = None

    def updated(self, **changes: Any) -> FilterSpec:
        """Return a copy with *changes* applied; unknown keys raise ``TypeError``."""
        return replace(self, **changes)

    def to_dict(self) -> FilterDict:
        return FilterDict(search=self.search, assignee=self.assignee, severity=self.severity)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterSpec:
        severity = data.get("severity")
        return cls(
            search=data.get("search") or "",
            assignee=data.get("assignee") or "",
            severity=int(severity) if severity is not None else None,
        )


def _matches_search(issue: Issue, needle: str) -> bool:
    if needle in issue.title.lower():
        return True
    return any(needle in tag.lower() for tag in issue.tags)


def apply_filters(issues: Iterable[Issue], spec: FilterSpec) -> list[Issue]:
    """Return the issues matching every active filter, preserving input order."""
    filtered = list(issues)

    if spec.search:
        needle = spec.search.lower()
        filtered = [i for i in filtered if _matches_search(i, needle)]

    if spec.assignee:
        filtered = [i for i in filtered if i.assignee == spec.assignee]

    if spec.severity is not None:
        filtered = [i for i in filtered if i.severity == spec.severity]

    return filtered


def has_active_filters(spec: FilterSpec) -> bool:
    return bool(spec.search or spec.assignee or spec.severity is not None)


def assignee_options(issues: Sequence[Issue]) -> list[str]:
    """Distinct assignees in first-seen order, for the assignee picker."""
    return list(dict.fromkeys(i.assignee for i in issues if i.assignee))
