"""Priority scoring and the board's total order.

score = severity * 10 - days since creation + user-defined rank

Scores depend on the clock, so they are recomputed on every call and never
stored on the issue. Higher scores sort first; equal scores put the newer
issue first, and exact duplicates keep their input order.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from boardsync.core import Issue, parse_timestamp

_SECONDS_PER_DAY = 86_400


def days_elapsed(created_at: str | datetime, now: datetime) -> int:
    """Whole days between *created_at* and *now*, never negative."""
    created = parse_timestamp(created_at) if isinstance(created_at, str) else created_at
    return max(0, (now - created).days)


def score(issue: Issue, now: datetime) -> int:
    return issue.severity * 10 - days_elapsed(issue.created_at, now) + issue.rank


def _sort_key(issue: Issue, now: datetime) -> tuple[int, float]:
    return (-score(issue, now), -issue.created.timestamp())


def order(issues: Iterable[Issue], now: datetime) -> list[Issue]:
    """Return a new list in board order. The input is not modified."""
    return sorted(issues, key=lambda issue: _sort_key(issue, now))
