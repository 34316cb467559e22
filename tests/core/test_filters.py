"""Tests for FilterSpec and the filter pipeline."""

from __future__ import annotations

import pytest

from boardsync.filters import FilterSpec, apply_filters, assignee_options, has_active_filters
from tests.conftest import make_issue

ISSUES = [
    make_issue("1", title="Login page crashes", assignee="alice", severity=3, tags=("bug", "auth")),
    make_issue("2", title="Dark mode toggle", assignee="bob", severity=1, tags=("ui",)),
    make_issue("3", title="Export to CSV", assignee="alice", severity=2, tags=("Reporting",)),
    make_issue("4", title="Session timeout", assignee="carol", severity=3, tags=("auth",)),
]


def _ids(issues: list) -> list[str]:
    return [i.id for i in issues]


class TestApplyFilters:
    def test_empty_spec_passes_everything(self) -> None:
        assert _ids(apply_filters(ISSUES, FilterSpec())) == ["1", "2", "3", "4"]

    def test_search_matches_title_case_insensitively(self) -> None:
        assert _ids(apply_filters(ISSUES, FilterSpec(search="LOGIN"))) == ["1"]

    def test_search_matches_tags(self) -> None:
        assert _ids(apply_filters(ISSUES, FilterSpec(search="auth"))) == ["1", "4"]
        assert _ids(apply_filters(ISSUES, FilterSpec(search="reporting"))) == ["3"]

    def test_assignee_exact_match(self) -> None:
        assert _ids(apply_filters(ISSUES, FilterSpec(assignee="alice"))) == ["1", "3"]
        assert apply_filters(ISSUES, FilterSpec(assignee="ali")) == []

    def test_severity_exact_match(self) -> None:
        assert _ids(apply_filters(ISSUES, FilterSpec(severity=3))) == ["1", "4"]

    def test_filters_combine_with_and(self) -> None:
        spec = FilterSpec(search="auth", assignee="carol", severity=3)
        assert _ids(apply_filters(ISSUES, spec)) == ["4"]

    def test_preserves_input_order(self) -> None:
        reversed_issues = list(reversed(ISSUES))
        assert _ids(apply_filters(reversed_issues, FilterSpec(severity=3))) == ["4", "1"]

    def test_idempotent(self) -> None:
        spec = FilterSpec(search="a", assignee="alice")
        once = apply_filters(ISSUES, spec)
        assert apply_filters(once, spec) == once

    def test_no_matches_yields_empty(self) -> None:
        assert apply_filters(ISSUES, FilterSpec(search="nothing like this")) == []


class TestFilterSpec:
    def test_updated_merges_partial_changes(self) -> None:
        spec = FilterSpec(search="bug", assignee="alice")
        merged = spec.updated(severity=2)
        assert merged == FilterSpec(search="bug", assignee="alice", severity=2)
        assert spec.severity is None

    def test_updated_rejects_unknown_keys(self) -> None:
        with pytest.raises(TypeError):
            FilterSpec().updated(status="Done")

    def test_dict_round_trip(self) -> None:
        spec = FilterSpec(search="x", assignee="bob", severity=1)
        assert FilterSpec.from_dict(spec.to_dict()) == spec

    def test_from_dict_treats_none_as_any(self) -> None:
        assert FilterSpec.from_dict({"search": None, "assignee": None}) == FilterSpec()

    def test_has_active_filters(self) -> None:
        assert not has_active_filters(FilterSpec())
        assert has_active_filters(FilterSpec(search="x"))
        assert has_active_filters(FilterSpec(severity=1))


class TestAssigneeOptions:
    def test_distinct_in_first_seen_order(self) -> None:
        assert assignee_options(ISSUES) == ["alice", "bob", "carol"]

    def test_unassigned_issues_skipped(self) -> None:
        issues = [make_issue("9", assignee=""), *ISSUES]
        assert assignee_options(issues) == ["alice", "bob", "carol"]
