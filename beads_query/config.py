"""Configuration management for beads-query."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import tomli_w

from beads_query.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

DEFAULT_COLUMNS = "id,priority,status,type,assignee,title"

# Columns the search table can display.
AVAILABLE_COLUMNS: tuple[str, ...] = (
    "id",
    "priority",
    "status",
    "type",
    "assignee",
    "title",
    "labels",
    "created",
    "updated",
    "due",
    "closed",
    "estimated",
    "creator",
    "repo",
)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "beads-query" / "config.toml"


def get_default_issues_file() -> Path:
    """Get the default issues file, relative to the working directory."""
    return Path(".beads") / "issues.jsonl"


def find_issues_file(start: Path | None = None) -> Path | None:
    """Find the default issues file in ``start`` or its nearest parent directory.

    Args:
        start: Directory to search from. If None, uses the working directory.

    Returns:
        Absolute path of the first ``.beads/issues.jsonl`` found, or None.
    """
    directory = (start or Path.cwd()).expanduser().resolve()
    for candidate in (directory, *directory.parents):
        path = candidate / get_default_issues_file()
        if path.is_file():
            return path
    return None


@dataclass
class Config:
    """Application configuration.

    Attributes:
        issues_file: Path to the Beads ``issues.jsonl`` file. The default
            location is also looked up in parent directories.
        colored_output: Whether to use colored terminal output.
        columns: Comma-separated default columns of the search table.
        default_query: Query used by ``search`` when none is given.
        timezone: IANA time zone for relative dates (None = UTC).
        config_path: Path where config was loaded from (None if defaults).
    """

    issues_file: Path = field(default_factory=get_default_issues_file)
    colored_output: bool = True
    columns: str = DEFAULT_COLUMNS
    default_query: str | None = None
    timezone: str | None = None
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        default_file = get_default_issues_file().resolve()
        self.issues_file = self.issues_file.expanduser().resolve()
        if not self.issues_file.exists() and self.issues_file == default_file:
            # Default location: also look in parent directories
            self.issues_file = find_issues_file() or self.issues_file
        if not self.issues_file.exists():
            warnings.append(f"Issues file not found: {self.issues_file}")

        for column in self.column_list():
            if column not in AVAILABLE_COLUMNS:
                raise ConfigValidationError(
                    "display.columns",
                    self.columns,
                    f"unknown column '{column}' (available: {', '.join(AVAILABLE_COLUMNS)})",
                )

        if self.timezone is not None:
            self.tzinfo()

        return warnings

    def column_list(self) -> list[str]:
        """Split ``columns`` into stripped, non-empty names."""
        return [c.strip() for c in self.columns.split(",") if c.strip()]

    def tzinfo(self) -> ZoneInfo | None:
        """Resolve ``timezone`` to a ZoneInfo, or None for UTC."""
        if self.timezone is None:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigValidationError(
                "query.timezone", self.timezone, "unknown time zone"
            ) from e


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: beads-query init-config"
        )
        config_warnings = config.validate()
        return config, warnings + config_warnings

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _optional_str(section: dict[str, Any], key: str, dotted: str) -> str | None:
    value = section[key]
    if value is not None and not isinstance(value, str):
        raise ConfigValidationError(dotted, value, "must be a string or null")
    return value


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [paths] section
    paths = data.get("paths", {})
    if "issues_file" in paths:
        value = paths["issues_file"]
        if not isinstance(value, str):
            raise ConfigValidationError("paths.issues_file", value, "must be a string path")
        config.issues_file = Path(value)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    if "columns" in display:
        value = display["columns"]
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            value = ",".join(value)
        if not isinstance(value, str):
            raise ConfigValidationError(
                "display.columns", value, "must be a comma-separated string or list of strings"
            )
        config.columns = value

    # Parse [query] section
    query = data.get("query", {})
    if "default" in query:
        config.default_query = _optional_str(query, "default", "query.default")

    if "timezone" in query:
        config.timezone = _optional_str(query, "timezone", "query.timezone")

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "paths": {
            "issues_file": str(config.issues_file),
        },
        "display": {
            "colored_output": config.colored_output,
            "columns": config.columns,
        },
    }

    query_data: dict[str, Any] = {}
    if config.default_query is not None:
        query_data["default"] = config.default_query
    if config.timezone is not None:
        query_data["timezone"] = config.timezone
    if query_data:
        data["query"] = query_data

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
