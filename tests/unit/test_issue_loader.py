"""Unit tests for the Issue model and JSONL loading."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from beads_query.exceptions import IssueLoadError, IssuesFileNotFoundError
from beads_query.model import Issue, Status, load_issues

MINIMAL = {
    "id": "bd-1",
    "title": "Something",
    "created_at": "2024-06-01T09:00:00Z",
}


class TestIssueFromDict:
    def test_defaults(self) -> None:
        issue = Issue.from_dict(MINIMAL)
        assert issue.status is Status.OPEN
        assert issue.priority == 2
        assert issue.issue_type == "task"
        assert issue.labels == []
        assert issue.assignee is None
        assert issue.updated_at == issue.created_at

    def test_timestamps_are_aware(self) -> None:
        issue = Issue.from_dict({**MINIMAL, "due_date": "2024-07-01T00:00:00"})
        assert issue.created_at == datetime(2024, 6, 1, 9, tzinfo=UTC)
        assert issue.due_date is not None
        assert issue.due_date.tzinfo is not None

    def test_unknown_keys_ignored(self) -> None:
        issue = Issue.from_dict({**MINIMAL, "compaction_level": 2, "dependencies": []})
        assert issue.id == "bd-1"

    def test_status_case_insensitive(self) -> None:
        assert Issue.from_dict({**MINIMAL, "status": "IN_PROGRESS"}).status is Status.IN_PROGRESS

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError):
            Issue.from_dict({**MINIMAL, "status": "someday"})

    def test_round_trip(self) -> None:
        data = {
            **MINIMAL,
            "status": "closed",
            "labels": ["a", "b"],
            "closed_at": "2024-06-02T09:00:00+00:00",
            "estimated_minutes": 15,
        }
        issue = Issue.from_dict(data)
        assert Issue.from_dict(issue.to_dict()) == issue

    def test_status_helpers(self) -> None:
        assert Status.CLOSED.is_closed()
        assert Status.IN_PROGRESS.is_open()
        assert not Status.BLOCKED.is_open()


class TestLoadIssues:
    def test_loads_in_file_order(self, issues_file: Path) -> None:
        issues = load_issues(issues_file)
        assert [i.id for i in issues] == ["bd-1", "bd-2", "bd-3", "bd-4"]

    def test_skips_blank_lines(self, temp_dir: Path) -> None:
        path = temp_dir / "issues.jsonl"
        path.write_text("\n" + json.dumps(MINIMAL) + "\n\n   \n")
        assert len(load_issues(path)) == 1

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(IssuesFileNotFoundError):
            load_issues(temp_dir / "missing.jsonl")

    def test_invalid_json_reports_line(self, temp_dir: Path) -> None:
        path = temp_dir / "issues.jsonl"
        path.write_text(json.dumps(MINIMAL) + "\n{not json\n")
        with pytest.raises(IssueLoadError) as exc_info:
            load_issues(path)
        assert exc_info.value.line_number == 2
        assert "invalid JSON" in exc_info.value.detail

    def test_missing_required_key(self, temp_dir: Path) -> None:
        path = temp_dir / "issues.jsonl"
        path.write_text(json.dumps({"id": "bd-1", "title": "x"}) + "\n")
        with pytest.raises(IssueLoadError) as exc_info:
            load_issues(path)
        assert "created_at" in exc_info.value.detail

    def test_non_object_line(self, temp_dir: Path) -> None:
        path = temp_dir / "issues.jsonl"
        path.write_text("[1, 2]\n")
        with pytest.raises(IssueLoadError):
            load_issues(path)

    def test_bad_value(self, temp_dir: Path) -> None:
        path = temp_dir / "issues.jsonl"
        path.write_text(json.dumps({**MINIMAL, "priority": "high"}) + "\n")
        with pytest.raises(IssueLoadError) as exc_info:
            load_issues(path)
        assert exc_info.value.line_number == 1
