"""Queryable issue fields, their types and aliases."""

from __future__ import annotations

from enum import Enum


class FieldType(Enum):
    """Value type of a queryable field, used for coercion and comparison."""

    STRING = "string"
    STRING_NULLABLE = "string?"
    STRING_LIST = "string[]"
    INTEGER = "integer"
    INTEGER_NULLABLE = "integer?"
    TIMESTAMP = "timestamp"
    TIMESTAMP_NULLABLE = "timestamp?"
    ENUM_STATUS = "status"
    ENUM_ISSUE_TYPE = "issue-type"

    @property
    def is_text(self) -> bool:
        return self in (FieldType.STRING, FieldType.STRING_NULLABLE)

    @property
    def is_integer(self) -> bool:
        return self in (FieldType.INTEGER, FieldType.INTEGER_NULLABLE)

    @property
    def is_timestamp(self) -> bool:
        return self in (FieldType.TIMESTAMP, FieldType.TIMESTAMP_NULLABLE)

    @property
    def is_enum(self) -> bool:
        return self in (FieldType.ENUM_STATUS, FieldType.ENUM_ISSUE_TYPE)


class QueryField(Enum):
    """All queryable fields of an issue.

    Each member carries its canonical name, its FieldType, the aliases it
    can be referred to by, and the record attribute it reads.

    Examples:
        - ``status:open`` -> STATUS
        - ``pri:0`` -> PRIORITY (alias)
        - ``type:bug`` -> ISSUE_TYPE
    """

    ID = ("id", FieldType.STRING, (), "id")
    TITLE = ("title", FieldType.STRING, (), "title")
    DESCRIPTION = ("description", FieldType.STRING, ("desc",), "description")
    STATUS = ("status", FieldType.ENUM_STATUS, (), "status")
    PRIORITY = ("priority", FieldType.INTEGER, ("pri",), "priority")
    ISSUE_TYPE = ("type", FieldType.ENUM_ISSUE_TYPE, ("issue_type", "issuetype"), "issue_type")

    ASSIGNEE = ("assignee", FieldType.STRING_NULLABLE, (), "assignee")
    ESTIMATED_MINUTES = (
        "estimated",
        FieldType.INTEGER_NULLABLE,
        ("estimate", "estimated_minutes"),
        "estimated_minutes",
    )
    EXTERNAL_REF = ("external", FieldType.STRING_NULLABLE, ("external_ref", "ref"), "external_ref")
    SOURCE_REPO = ("repo", FieldType.STRING_NULLABLE, ("source_repo",), "source_repo")

    CREATED_AT = ("created", FieldType.TIMESTAMP, ("created_at",), "created_at")
    CREATED_BY = ("creator", FieldType.STRING, ("created_by",), "created_by")
    UPDATED_AT = ("updated", FieldType.TIMESTAMP, ("updated_at",), "updated_at")
    DUE_DATE = ("due", FieldType.TIMESTAMP_NULLABLE, ("due_date",), "due_date")
    CLOSED_AT = ("closed", FieldType.TIMESTAMP_NULLABLE, ("closed_at",), "closed_at")

    LABELS = ("label", FieldType.STRING_LIST, ("labels", "tag", "tags"), "labels")

    DESIGN = ("design", FieldType.STRING_NULLABLE, (), "design")
    ACCEPTANCE_CRITERIA = (
        "acceptance",
        FieldType.STRING_NULLABLE,
        ("acceptance_criteria",),
        "acceptance_criteria",
    )
    NOTES = ("notes", FieldType.STRING_NULLABLE, (), "notes")

    def __init__(
        self, field_name: str, field_type: FieldType, aliases: tuple[str, ...], attribute: str
    ) -> None:
        self.field_name = field_name
        self.field_type = field_type
        self.aliases = frozenset(aliases)
        self.attribute = attribute

    def __str__(self) -> str:
        return self.field_name

    @classmethod
    def from_string(cls, name: str) -> QueryField | None:
        """Look up a field by name or alias, case-insensitively."""
        return _FIELDS_BY_NAME.get(name.lower())

    @classmethod
    def get_suggestions(cls, name: str, max_suggestions: int = 3) -> list[str]:
        """Suggest field names for an unknown ``name``.

        Fields whose name or any alias starts with ``name`` come first;
        only when there are fewer than ``max_suggestions`` of those are
        fields containing ``name`` as a substring appended.
        """
        normalized = name.lower()

        prefix_matches = [
            f.field_name
            for f in cls
            if f.field_name.startswith(normalized)
            or any(alias.startswith(normalized) for alias in f.aliases)
        ]
        if len(prefix_matches) >= max_suggestions:
            return prefix_matches[:max_suggestions]

        substring_matches = [
            f.field_name
            for f in cls
            if normalized in f.field_name or any(normalized in alias for alias in f.aliases)
        ]
        return list(dict.fromkeys(prefix_matches + substring_matches))[:max_suggestions]


# Name/alias -> field, built once at import.
_FIELDS_BY_NAME: dict[str, QueryField] = {}
for _field in QueryField:
    _FIELDS_BY_NAME[_field.field_name] = _field
    for _alias in _field.aliases:
        _FIELDS_BY_NAME[_alias] = _field
del _field, _alias

# Fields searched by a bare term with no field prefix.
TEXT_SEARCHABLE: tuple[QueryField, ...] = (
    QueryField.TITLE,
    QueryField.DESCRIPTION,
    QueryField.DESIGN,
    QueryField.ACCEPTANCE_CRITERIA,
    QueryField.NOTES,
)
