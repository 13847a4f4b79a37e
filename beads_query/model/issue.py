"""Issue record as stored in a Beads ``issues.jsonl`` file."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Status(Enum):
    """Issue workflow status."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    CLOSED = "closed"
    TOMBSTONE = "tombstone"
    HOOKED = "hooked"

    def is_closed(self) -> bool:
        return self is Status.CLOSED

    def is_open(self) -> bool:
        return self in (Status.OPEN, Status.IN_PROGRESS)


# Standard Beads issue types. Other strings are accepted as custom types.
KNOWN_ISSUE_TYPES: tuple[str, ...] = ("bug", "feature", "task", "epic", "chore", "merge-request")


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class Issue:
    """A single issue.

    Attributes mirror the JSONL keys; ``issue_type`` is a free string so
    custom types survive a round trip.
    """

    id: str
    title: str
    status: Status
    priority: int
    issue_type: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    assignee: str | None = None
    created_by: str = ""
    due_date: datetime | None = None
    closed_at: datetime | None = None
    labels: list[str] = field(default_factory=list)
    estimated_minutes: int | None = None
    external_ref: str | None = None
    source_repo: str | None = None
    design: str | None = None
    acceptance_criteria: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        """Build an Issue from a decoded JSON object.

        Unknown keys are ignored. Raises KeyError for a missing required
        key and ValueError for a malformed status or timestamp.
        """
        created_at = _parse_datetime(data["created_at"])
        updated_at = _parse_datetime(data.get("updated_at")) or created_at
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            status=Status(str(data.get("status", "open")).lower()),
            priority=int(data.get("priority", 2)),
            issue_type=str(data.get("issue_type", "task")),
            created_at=created_at,
            updated_at=updated_at,
            description=data.get("description") or "",
            assignee=data.get("assignee"),
            created_by=data.get("created_by") or "",
            due_date=_parse_datetime(data.get("due_date")),
            closed_at=_parse_datetime(data.get("closed_at")),
            labels=[str(label) for label in data.get("labels") or []],
            estimated_minutes=data.get("estimated_minutes"),
            external_ref=data.get("external_ref"),
            source_repo=data.get("source_repo"),
            design=data.get("design"),
            acceptance_criteria=data.get("acceptance_criteria"),
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict using the JSONL keys."""

        def _ts(value: datetime | None) -> str | None:
            return value.isoformat() if value is not None else None

        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority,
            "issue_type": self.issue_type,
            "assignee": self.assignee,
            "created_at": _ts(self.created_at),
            "created_by": self.created_by,
            "updated_at": _ts(self.updated_at),
            "due_date": _ts(self.due_date),
            "closed_at": _ts(self.closed_at),
            "labels": list(self.labels),
            "estimated_minutes": self.estimated_minutes,
            "external_ref": self.external_ref,
            "source_repo": self.source_repo,
            "design": self.design,
            "acceptance_criteria": self.acceptance_criteria,
            "notes": self.notes,
        }
