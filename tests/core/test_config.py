"""Tests for the Issue model and .boardsync/ config discovery."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from boardsync.core import (
    BOARDSYNC_DIR_NAME,
    CONFIG_FILENAME,
    ENV_REMOTE_URL,
    ENV_USER,
    Issue,
    default_config,
    find_boardsync_root,
    read_config,
    write_config,
)
from boardsync.seed_data import SEED_ISSUES
from tests.conftest import make_issue


class TestIssueModel:
    def test_wire_round_trip(self) -> None:
        for record in SEED_ISSUES:
            assert Issue.from_dict(record).to_dict() == record

    def test_optional_fields_omitted_when_absent(self) -> None:
        data = make_issue("1").to_dict()
        assert "userDefinedRank" not in data
        assert "description" not in data

    def test_from_dict_requires_core_keys(self) -> None:
        with pytest.raises(ValueError, match="createdAt"):
            Issue.from_dict({"id": "1", "title": "t", "status": "Backlog", "severity": 1})

    def test_from_dict_rejects_unparseable_created_at(self) -> None:
        record = {**make_issue("1").to_dict(), "createdAt": "not-a-date"}
        with pytest.raises(ValueError, match="invalid createdAt: 'not-a-date'"):
            Issue.from_dict(record)

    def test_merged_never_changes_id(self) -> None:
        issue = make_issue("1")
        merged = issue.merged({"id": "9", "title": "New"})  # type: ignore[typeddict-unknown-key]
        assert merged.id == "1"
        assert merged.title == "New"
        assert issue.title == "Issue 1"

    def test_merged_converts_tags(self) -> None:
        assert make_issue("1").merged({"tags": ["a"]}).tags == ("a",)

    def test_rank_defaults_to_zero(self) -> None:
        assert make_issue("1").rank == 0
        assert make_issue("1", user_defined_rank=4).rank == 4

    def test_to_patch_sends_explicit_nulls(self) -> None:
        patch = make_issue("1").to_patch()
        assert patch["userDefinedRank"] is None
        assert patch["description"] is None
        assert "id" not in patch
        assert "createdAt" not in patch


class TestDiscovery:
    def test_finds_dir_in_parent(self, tmp_path: Path) -> None:
        (tmp_path / BOARDSYNC_DIR_NAME).mkdir()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_boardsync_root(nested) == (tmp_path / BOARDSYNC_DIR_NAME).resolve()

    def test_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            find_boardsync_root(tmp_path)


class TestConfig:
    @pytest.fixture(autouse=True)
    def _clear_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(ENV_REMOTE_URL, raising=False)
        monkeypatch.delenv(ENV_USER, raising=False)

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert read_config(tmp_path) == default_config()

    def test_round_trip_merges_over_defaults(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"polling_interval": 30000, "user": "Bob"})
        config = read_config(tmp_path)
        assert config["polling_interval"] == 30000
        assert config["user"] == "Bob"
        assert config["page_size"] == default_config()["page_size"]

    def test_write_is_atomic(self, tmp_path: Path) -> None:
        write_config(tmp_path, default_config())
        assert [p.name for p in tmp_path.iterdir()] == [CONFIG_FILENAME]
        assert json.loads((tmp_path / CONFIG_FILENAME).read_text())["user"] == "Alice"

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("{not json")
        assert read_config(tmp_path) == default_config()
        assert "using defaults" in caplog.text

    def test_non_object_falls_back_to_defaults(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[1, 2]")
        assert read_config(tmp_path) == default_config()

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_config(tmp_path, {"user": "Alice"})
        monkeypatch.setenv(ENV_USER, "Bob")
        monkeypatch.setenv(ENV_REMOTE_URL, "http://remote:8378")
        config = read_config(tmp_path)
        assert config["user"] == "Bob"
        assert config["remote_url"] == "http://remote:8378"
