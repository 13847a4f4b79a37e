"""Completion suggestions for partially typed queries."""

from __future__ import annotations

import re
from dataclasses import dataclass

from beads_query.model.issue import KNOWN_ISSUE_TYPES, Status
from beads_query.query.fields import FieldType, QueryField
from beads_query.query.values import RelativeDateSpec

_KEYWORDS = ("and", "or", "not", "sort by")

# ``field:partial`` at the end of the text before the cursor.
_FIELD_VALUE_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_-]*):([^\s:,()]*)$")
_SORT_FIELD_RE = re.compile(
    r"sort\s+by\s*:\s*(?:[A-Za-z_-]+(?:\s+(?:asc|desc))?\s*,\s*)*([A-Za-z_-]*)$",
    re.IGNORECASE,
)
_WORD_RE = re.compile(r"([A-Za-z0-9_-]*)$")


@dataclass(frozen=True)
class CompletionSuggestion:
    """A single completion candidate.

    Attributes:
        text: Text to insert in place of the current word.
        type_text: Short category shown next to the candidate.
        tail_text: Optional extra hint (aliases, alias target).
    """

    text: str
    type_text: str
    tail_text: str = ""


def _value_candidates(field: QueryField) -> list[tuple[str, str]]:
    field_type = field.field_type
    if field_type is FieldType.ENUM_STATUS:
        return [(s.value, "status") for s in Status]
    if field_type is FieldType.ENUM_ISSUE_TYPE:
        return [(t, "type") for t in KNOWN_ISSUE_TYPES]
    if field is QueryField.PRIORITY:
        return [(str(p), "priority") for p in range(5)]
    if field_type.is_timestamp:
        candidates = [(spec.value, "relative date") for spec in RelativeDateSpec]
        if field_type is FieldType.TIMESTAMP_NULLABLE:
            candidates.append(("null", "special"))
        return candidates
    if field_type is FieldType.STRING_NULLABLE:
        return [("null", "special"), ("unassigned", "special")]
    if field_type is FieldType.INTEGER_NULLABLE or field_type is FieldType.STRING_LIST:
        return [("null", "special")]
    return []


def _field_candidates(prefix: str) -> list[CompletionSuggestion]:
    prefix = prefix.lower()
    suggestions: list[CompletionSuggestion] = []
    for field in QueryField:
        if field.field_name.startswith(prefix):
            tail = f" ({', '.join(sorted(field.aliases))})" if field.aliases else ""
            suggestions.append(CompletionSuggestion(field.field_name, field.field_type.value, tail))
        for alias in sorted(field.aliases):
            if prefix and alias.startswith(prefix) and not field.field_name.startswith(prefix):
                suggestions.append(
                    CompletionSuggestion(alias, f"-> {field.field_name}", " (alias)")
                )
    return suggestions


def get_completions(text: str, cursor: int | None = None) -> list[CompletionSuggestion]:
    """Suggest completions for ``text`` with the cursor at ``cursor``.

    After ``field:`` the known values of that field are suggested;
    inside a ``sort by:`` clause field names; otherwise field names and
    keywords matching the word under the cursor.

    Args:
        text: The query typed so far.
        cursor: Cursor offset; defaults to the end of ``text``.

    Returns:
        Suggestions ordered values/fields first, keywords last.
    """
    before = text if cursor is None else text[: max(0, min(cursor, len(text)))]

    sort_match = _SORT_FIELD_RE.search(before)
    if sort_match:
        return _field_candidates(sort_match.group(1))

    value_match = _FIELD_VALUE_RE.search(before)
    if value_match:
        field = QueryField.from_string(value_match.group(1))
        if field is None:
            return []
        prefix = value_match.group(2).lower()
        return [
            CompletionSuggestion(value, type_text)
            for value, type_text in _value_candidates(field)
            if value.startswith(prefix)
        ]

    word = _WORD_RE.search(before).group(1).lower()
    suggestions = _field_candidates(word)
    suggestions.extend(
        CompletionSuggestion(keyword, "keyword")
        for keyword in _KEYWORDS
        if word and keyword.startswith(word)
    )
    return suggestions
