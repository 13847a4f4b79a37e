"""Shared pytest fixtures."""

from __future__ import annotations

import json
import shutil
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from beads_query.model import Issue

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

# Wednesday, mid-month, so week and month periods have room on both sides.
FIXED_NOW = datetime(2024, 6, 12, 12, 0, tzinfo=UTC)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always reads FIXED_NOW."""
    return lambda: FIXED_NOW


def make_issue(issue_id: str = "bd-1", **overrides: Any) -> Issue:
    """Build an Issue from JSONL-style keys with sensible defaults."""
    data: dict[str, Any] = {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "status": "open",
        "priority": 2,
        "issue_type": "task",
        "created_at": "2024-06-01T09:00:00Z",
        "updated_at": "2024-06-01T09:00:00Z",
    }
    data.update(overrides)
    return Issue.from_dict(data)


@pytest.fixture
def sample_issues() -> list[Issue]:
    """A small, varied set of issues."""
    return [
        make_issue(
            "bd-1",
            title="Login page crashes on submit",
            description="Stack trace in the auth handler",
            priority=0,
            issue_type="bug",
            assignee="alice",
            labels=["frontend", "auth"],
            created_at="2024-06-10T08:00:00Z",
            updated_at="2024-06-12T10:00:00Z",
            due_date="2024-06-14T00:00:00Z",
        ),
        make_issue(
            "bd-2",
            title="Add dark mode",
            status="in_progress",
            priority=1,
            issue_type="feature",
            assignee="bob",
            labels=["frontend"],
            created_at="2024-05-20T08:00:00Z",
            updated_at="2024-06-11T10:00:00Z",
            estimated_minutes=240,
        ),
        make_issue(
            "bd-3",
            title="Migrate database",
            status="blocked",
            priority=2,
            issue_type="task",
            labels=["backend"],
            created_at="2024-05-02T08:00:00Z",
            updated_at="2024-05-30T10:00:00Z",
            notes="Waiting for the DBA",
        ),
        make_issue(
            "bd-4",
            title="Update dependencies",
            status="closed",
            priority=3,
            issue_type="chore",
            assignee="alice",
            created_at="2024-04-01T08:00:00Z",
            updated_at="2024-06-05T10:00:00Z",
            closed_at="2024-06-05T10:00:00Z",
        ),
    ]


@pytest.fixture
def issues_file(temp_dir: Path, sample_issues: list[Issue]) -> Path:
    """Write sample_issues to an issues.jsonl file."""
    path = temp_dir / "issues.jsonl"
    path.write_text("\n".join(json.dumps(issue.to_dict()) for issue in sample_issues) + "\n")
    return path


@pytest.fixture
def sample_config(temp_dir: Path, issues_file: Path) -> Path:
    """Create a sample config file pointing at issues_file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text(f"""[paths]
issues_file = "{issues_file}"

[display]
colored_output = false
columns = "id,priority,status,title"
""")
    return config_path


@pytest.fixture
def issue_factory() -> Callable[..., Issue]:
    """Factory fixture for one-off issues, see make_issue."""
    return make_issue
