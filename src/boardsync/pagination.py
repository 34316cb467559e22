"""Per-column pagination of the filtered board.

Every status column is paginated independently against one shared page
number and page size. The board-level page control is driven by the
largest ``total_pages`` across the columns.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from boardsync.core import BOARD_COLUMNS, Issue


@dataclass(frozen=True)
class Page:
    items: list[Issue]
    total_pages: int


@dataclass(frozen=True)
class ColumnPage:
    status: str
    items: list[Issue]
    total_issues: int
    total_pages: int


@dataclass(frozen=True)
class BoardPage:
    columns: list[ColumnPage]
    page: int
    page_size: int
    total_pages: int

    def column(self, status: str) -> ColumnPage:
        for col in self.columns:
            if col.status == status:
                return col
        raise KeyError(status)


def paginate(items: Sequence[Issue], page: int, page_size: int) -> Page:
    """Slice *items* into the 1-based *page*.

    Pages past the end yield an empty slice; the page number is not clamped.
    """
    if page_size < 1:
        msg = f"page_size must be >= 1, got {page_size}"
        raise ValueError(msg)
    if page < 1:
        msg = f"page must be >= 1, got {page}"
        raise ValueError(msg)
    total_pages = max(1, math.ceil(len(items) / page_size))
    start = (page - 1) * page_size
    return Page(items=list(items[start : start + page_size]), total_pages=total_pages)


def group_by_status(issues: Iterable[Issue]) -> dict[str, list[Issue]]:
    """Bucket issues into the board columns. Unknown statuses are dropped."""
    grouped: dict[str, list[Issue]] = {status: [] for status in BOARD_COLUMNS}
    for issue in issues:
        bucket = grouped.get(issue.status)
        if bucket is not None:
            bucket.append(issue)
    return grouped


def paginate_board(issues: Iterable[Issue], page: int, page_size: int) -> BoardPage:
    grouped = group_by_status(issues)
    columns: list[ColumnPage] = []
    for status in BOARD_COLUMNS:
        column_issues = grouped[status]
        result = paginate(column_issues, page, page_size)
        columns.append(
            ColumnPage(
                status=status,
                items=result.items,
                total_issues=len(column_issues),
                total_pages=result.total_pages,
            )
        )
    return BoardPage(
        columns=columns,
        page=page,
        page_size=page_size,
        total_pages=max(col.total_pages for col in columns),
    )
