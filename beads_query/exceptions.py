"""Exception hierarchy for beads-query."""

from pathlib import Path


class BeadsQueryError(Exception):
    """Base exception for all beads-query errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all beads-query errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(BeadsQueryError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Query Errors
class QueryError(BeadsQueryError):
    """A query could not be tokenized or parsed.

    Attributes:
        position: 0-indexed character offset of the offending input,
            or None when no single position applies.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.message = message
        self.position = position
        super().__init__(message)


class LexError(QueryError):
    """Unterminated string or unrecognized character."""

    pass


class QueryParseError(QueryError):
    """Structural or semantic error in a token stream."""

    pass


class UnknownFieldError(QueryParseError):
    """Field name matches no field or alias."""

    def __init__(self, name: str, suggestions: list[str], position: int | None = None) -> None:
        self.name = name
        self.suggestions = suggestions
        hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
        super().__init__(f"Unknown field '{name}'.{hint}", position)


class ValueCoercionError(QueryParseError):
    """Value is incompatible with the type of its field."""

    def __init__(self, field: str, value: str, reason: str, position: int | None = None) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot use value '{value}' for field '{field}': {reason}", position)


# Issue Store Errors
class IssueStoreError(BeadsQueryError):
    """Issue store related errors."""

    pass


class IssuesFileNotFoundError(IssueStoreError):
    """Issues file doesn't exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Issues file not found: {path}")


class IssueLoadError(IssueStoreError):
    """A line of the issues file could not be decoded."""

    def __init__(self, path: Path, line_number: int, detail: str) -> None:
        self.path = path
        self.line_number = line_number
        self.detail = detail
        super().__init__(f"Invalid issue at {path}:{line_number}: {detail}")
