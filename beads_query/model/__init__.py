"""Issue records and loading."""

from beads_query.model.issue import KNOWN_ISSUE_TYPES, Issue, Status
from beads_query.model.loader import load_issues

__all__ = [
    "KNOWN_ISSUE_TYPES",
    "Issue",
    "Status",
    "load_issues",
]
