"""Shared validation functions for all entry points.

Pure functions: no FastAPI or Click dependencies. Each returns
``(cleaned, None)`` on success or ``(empty, error_message)`` on failure so
callers can choose between raising and building an error response.
"""

from __future__ import annotations

import unicodedata
from typing import Any

from boardsync.core import EDITABLE_FIELDS, POLLING_OPTIONS_MS, VALID_PRIORITIES, VALID_STATUSES
from boardsync.types.core import IssuePatch

_MAX_TITLE_LENGTH = 500
_MAX_NAME_LENGTH = 128


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _has_control_chars(value: str) -> bool:
    return any(unicodedata.category(ch) in ("Cc", "Cf") for ch in value)


def validate_patch(value: Any) -> tuple[IssuePatch, str | None]:
    """Validate a partial issue update expressed with wire keys."""
    if not isinstance(value, dict):
        return (IssuePatch(), "patch must be an object")
    if not value:
        return (IssuePatch(), "patch must not be empty")
    unknown = sorted(set(value) - EDITABLE_FIELDS)
    if unknown:
        return (IssuePatch(), f"fields are not editable: {', '.join(unknown)}")

    cleaned: dict[str, Any] = {}
    for key, raw in value.items():
        if key == "status":
            if raw not in VALID_STATUSES:
                return (IssuePatch(), f"status must be one of: {', '.join(sorted(VALID_STATUSES))}")
        elif key == "priority":
            if raw not in VALID_PRIORITIES:
                return (IssuePatch(), f"priority must be one of: {', '.join(sorted(VALID_PRIORITIES))}")
        elif key == "severity":
            if not _is_int(raw):
                return (IssuePatch(), "severity must be an integer")
        elif key == "userDefinedRank":
            if raw is not None and not _is_int(raw):
                return (IssuePatch(), "userDefinedRank must be an integer or null")
        elif key == "title":
            if not isinstance(raw, str) or not raw.strip():
                return (IssuePatch(), "title must be a non-empty string")
            if len(raw) > _MAX_TITLE_LENGTH:
                return (IssuePatch(), f"title must be at most {_MAX_TITLE_LENGTH} characters")
        elif key == "assignee":
            if not isinstance(raw, str) or _has_control_chars(raw):
                return (IssuePatch(), "assignee must be a string without control characters")
        elif key == "tags":
            if not isinstance(raw, list | tuple) or not all(isinstance(t, str) for t in raw):
                return (IssuePatch(), "tags must be a list of strings")
            raw = list(raw)
        elif key == "description":
            if raw is not None and not isinstance(raw, str):
                return (IssuePatch(), "description must be a string or null")
        cleaned[key] = raw
    return (IssuePatch(**cleaned), None)  # type: ignore[typeddict-item]


def validate_polling_interval(value: Any) -> tuple[int, str | None]:
    """Accept only the enumerated polling intervals (milliseconds)."""
    if not _is_int(value) or value not in POLLING_OPTIONS_MS:
        allowed = ", ".join(str(ms) for ms in POLLING_OPTIONS_MS)
        return (0, f"polling interval must be one of: {allowed} (ms)")
    return (value, None)


def sanitize_user_name(value: Any) -> tuple[str, str | None]:
    """Validate and clean a user name.

    Strips whitespace, then checks: non-empty, max length, no control/format chars.
    """
    if not isinstance(value, str):
        return ("", "user must be a string")
    # Reject "\nbad" rather than silently absorbing the newline via strip().
    for ch in value:
        if unicodedata.category(ch).startswith("C"):
            return ("", f"user must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", "user must not be empty")
    if len(cleaned) > _MAX_NAME_LENGTH:
        return ("", f"user must be at most {_MAX_NAME_LENGTH} characters")
    return (cleaned, None)
