"""Load issues from a Beads JSONL file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from beads_query.exceptions import IssueLoadError, IssuesFileNotFoundError
from beads_query.model.issue import Issue

logger = logging.getLogger(__name__)

# Truncate offending lines in error messages.
_MAX_LINE_PREVIEW = 100


def load_issues(path: Path) -> list[Issue]:
    """Read every issue from a JSONL file, one JSON object per line.

    Blank lines are skipped.

    Args:
        path: Path to the ``issues.jsonl`` file.

    Returns:
        Issues in file order.

    Raises:
        IssuesFileNotFoundError: If ``path`` does not exist.
        IssueLoadError: If a line is not valid JSON or not a valid issue.
    """
    if not path.exists():
        raise IssuesFileNotFoundError(path)

    issues: list[Issue] = []
    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped:
                continue
            try:
                data = json.loads(stripped)
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                issues.append(Issue.from_dict(data))
            except json.JSONDecodeError as e:
                raise IssueLoadError(path, line_number, f"invalid JSON: {e.msg}") from e
            except KeyError as e:
                raise IssueLoadError(path, line_number, f"missing key {e}") from e
            except (TypeError, ValueError) as e:
                preview = stripped[:_MAX_LINE_PREVIEW]
                raise IssueLoadError(path, line_number, f"{e} in: {preview}") from e

    logger.debug("Loaded %d issues from %s", len(issues), path)
    return issues
