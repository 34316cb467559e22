"""Issue model, board constants, and project configuration discovery.

Every other module imports the ``Issue`` snapshot type and the board
constants from here. Issues are immutable: edits produce new snapshots via
``Issue.merged()`` so a previous state can always be restored verbatim.

Convention-based discovery: each project has a `.boardsync/` directory
containing `config.json` (polling interval, page size, user, remote URL)
and `boardsync.log`.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from boardsync.types.core import IssueDict, IssuePatch, ProjectConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constrained-string Literal types
# ---------------------------------------------------------------------------

IssueStatus = Literal["Backlog", "In Progress", "Done"]
IssuePriority = Literal["low", "medium", "high"]

BOARD_COLUMNS: tuple[IssueStatus, ...] = ("Backlog", "In Progress", "Done")
VALID_STATUSES: frozenset[str] = frozenset(BOARD_COLUMNS)
VALID_PRIORITIES: frozenset[str] = frozenset({"low", "medium", "high"})

# ---------------------------------------------------------------------------
# Engine constants
# ---------------------------------------------------------------------------

DEFAULT_POLLING_INTERVAL_MS = 10_000
POLLING_OPTIONS_MS: tuple[int, ...] = (5_000, 10_000, 30_000, 60_000, 120_000)
DEFAULT_PAGE_SIZE = 20
UNDO_TIMEOUT_MS = 5_000
UNDO_TICK_MS = 100
API_DELAY_MS = 500
API_SUCCESS_RATE = 0.9

# Wire key -> dataclass attribute. Order matches the wire format.
_WIRE_FIELDS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "status": "status",
    "priority": "priority",
    "severity": "severity",
    "createdAt": "created_at",
    "assignee": "assignee",
    "tags": "tags",
    "userDefinedRank": "user_defined_rank",
    "description": "description",
}
_REQUIRED_WIRE_KEYS = ("id", "title", "status", "severity", "createdAt")
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"status", "priority", "severity", "assignee", "userDefinedRank", "title", "tags", "description"}
)


def now_utc() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are treated as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Issue:
    id: str
    title: str
    status: str = "Backlog"
    priority: str = "medium"
    severity: int = 1
    created_at: str = ""
    assignee: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    user_defined_rank: int | None = None
    description: str | None = None

    @property
    def created(self) -> datetime:
        return parse_timestamp(self.created_at)

    @property
    def rank(self) -> int:
        return self.user_defined_rank or 0

    def merged(self, patch: IssuePatch) -> Issue:
        """Return a copy with *patch* (wire keys) applied. ``id`` never changes."""
        changes: dict[str, Any] = {}
        for key, value in patch.items():
            attr = _WIRE_FIELDS[key]
            if attr == "id":
                continue
            changes[attr] = tuple(value) if attr == "tags" else value
        return replace(self, **changes)

    def to_patch(self) -> IssuePatch:
        """Every editable field, used to persist a restored snapshot.

        Optional fields are sent as explicit nulls so a restore also clears
        values the undone edit introduced.
        """
        data: dict[str, Any] = {k: v for k, v in self.to_dict().items() if k in EDITABLE_FIELDS}
        data.setdefault("userDefinedRank", None)
        data.setdefault("description", None)
        return IssuePatch(**data)  # type: ignore[typeddict-item]

    def to_dict(self) -> IssueDict:
        result = IssueDict(
            id=self.id,
            title=self.title,
            status=self.status,
            priority=self.priority,
            severity=self.severity,
            createdAt=self.created_at,
            assignee=self.assignee,
            tags=list(self.tags),
        )
        if self.user_defined_rank is not None:
            result["userDefinedRank"] = self.user_defined_rank
        if self.description is not None:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        missing = [k for k in _REQUIRED_WIRE_KEYS if k not in data]
        if missing:
            msg = f"Issue payload missing required keys: {', '.join(missing)}"
            raise ValueError(msg)
        created_at = str(data["createdAt"])
        try:
            parse_timestamp(created_at)
        except ValueError as exc:
            msg = f"Issue {data['id']} has an invalid createdAt: {created_at!r}"
            raise ValueError(msg) from exc
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            status=data["status"],
            priority=data.get("priority", "medium"),
            severity=int(data["severity"]),
            created_at=created_at,
            assignee=data.get("assignee", ""),
            tags=tuple(data.get("tags") or ()),
            user_defined_rank=data.get("userDefinedRank"),
            description=data.get("description"),
        )


# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

BOARDSYNC_DIR_NAME = ".boardsync"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "boardsync.log"
LAST_ACTION_FILENAME = "last_action.json"

ENV_REMOTE_URL = "BOARDSYNC_REMOTE_URL"
ENV_USER = "BOARDSYNC_USER"


def find_boardsync_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .boardsync/ directory.

    Returns the .boardsync/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / BOARDSYNC_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {BOARDSYNC_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def default_config() -> ProjectConfig:
    return ProjectConfig(
        polling_interval=DEFAULT_POLLING_INTERVAL_MS,
        page_size=DEFAULT_PAGE_SIZE,
        user="Alice",
        remote_url=None,
        success_rate=API_SUCCESS_RATE,
        api_delay_ms=API_DELAY_MS,
    )


def read_config(boardsync_dir: Path) -> ProjectConfig:
    """Read .boardsync/config.json merged over defaults. Returns defaults if missing or corrupt."""
    config = default_config()
    config_path = boardsync_dir / CONFIG_FILENAME
    if config_path.exists():
        try:
            loaded = json.loads(config_path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        else:
            if isinstance(loaded, dict):
                config.update(loaded)  # type: ignore[typeddict-item]
            else:
                logger.warning("%s is not a JSON object, using defaults", config_path)

    remote_url = os.getenv(ENV_REMOTE_URL)
    if remote_url:
        config["remote_url"] = remote_url
    user = os.getenv(ENV_USER)
    if user:
        config["user"] = user
    return config


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def write_config(boardsync_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .boardsync/config.json."""
    write_atomic(boardsync_dir / CONFIG_FILENAME, json.dumps(config, indent=2) + "\n")
