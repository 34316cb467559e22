"""Seed issue set served by the in-memory remote store.

Wire-format dicts (camelCase keys), copied on every fetch so callers can
never mutate the store's cache through a returned object.
"""

from __future__ import annotations

from typing import Any

SEED_ISSUES: list[dict[str, Any]] = [
    {
        "id": "1",
        "title": "Login page crashes on empty password",
        "status": "Backlog",
        "priority": "high",
        "severity": 3,
        "createdAt": "2025-11-20T10:00:00Z",
        "assignee": "alice",
        "tags": ["bug", "auth"],
        "userDefinedRank": 5,
        "description": "Submitting the login form with an empty password throws instead of showing a validation error.",
    },
    {
        "id": "2",
        "title": "Add dark mode toggle to settings",
        "status": "Backlog",
        "priority": "low",
        "severity": 1,
        "createdAt": "2025-11-18T09:30:00Z",
        "assignee": "bob",
        "tags": ["feature", "ui"],
    },
    {
        "id": "3",
        "title": "Board polling drops updates after network blip",
        "status": "In Progress",
        "priority": "high",
        "severity": 3,
        "createdAt": "2025-11-21T14:15:00Z",
        "assignee": "carol",
        "tags": ["bug", "sync"],
        "userDefinedRank": 2,
    },
    {
        "id": "4",
        "title": "Document the issue priority formula",
        "status": "Done",
        "priority": "medium",
        "severity": 1,
        "createdAt": "2025-11-10T08:00:00Z",
        "assignee": "alice",
        "tags": ["docs"],
    },
    {
        "id": "5",
        "title": "Search ignores tag matches",
        "status": "In Progress",
        "priority": "medium",
        "severity": 2,
        "createdAt": "2025-11-19T16:45:00Z",
        "assignee": "bob",
        "tags": ["bug", "search"],
    },
    {
        "id": "6",
        "title": "Paginate board columns",
        "status": "Backlog",
        "priority": "medium",
        "severity": 2,
        "createdAt": "2025-11-15T11:20:00Z",
        "assignee": "carol",
        "tags": ["feature", "ui"],
        "userDefinedRank": 1,
    },
    {
        "id": "7",
        "title": "Undo toast disappears too early",
        "status": "Backlog",
        "priority": "medium",
        "severity": 2,
        "createdAt": "2025-11-22T13:05:00Z",
        "assignee": "alice",
        "tags": ["bug", "ux"],
    },
    {
        "id": "8",
        "title": "Rate-limit the update endpoint",
        "status": "Backlog",
        "priority": "high",
        "severity": 3,
        "createdAt": "2025-11-12T07:40:00Z",
        "assignee": "dave",
        "tags": ["security", "api"],
    },
    {
        "id": "9",
        "title": "Show last sync time in board header",
        "status": "Done",
        "priority": "low",
        "severity": 1,
        "createdAt": "2025-11-08T15:00:00Z",
        "assignee": "bob",
        "tags": ["ui"],
    },
    {
        "id": "10",
        "title": "Read-only badge for contributors",
        "status": "Done",
        "priority": "medium",
        "severity": 2,
        "createdAt": "2025-11-09T10:10:00Z",
        "assignee": "carol",
        "tags": ["auth", "ui"],
    },
    {
        "id": "11",
        "title": "Assignee filter lists duplicates",
        "status": "In Progress",
        "priority": "low",
        "severity": 1,
        "createdAt": "2025-11-23T09:00:00Z",
        "assignee": "dave",
        "tags": ["bug", "filters"],
    },
    {
        "id": "12",
        "title": "Drag and drop between columns on touch devices",
        "status": "Backlog",
        "priority": "medium",
        "severity": 2,
        "createdAt": "2025-11-17T12:30:00Z",
        "assignee": "alice",
        "tags": ["feature", "mobile"],
        "userDefinedRank": -2,
    },
]
