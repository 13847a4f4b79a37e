"""Write a beads-query configuration file."""

from __future__ import annotations

import re
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

import click
import tomli_w
from rich.markup import escape

from beads_query.cli import EXIT_CONFIG_ERROR, Context, pass_context
from beads_query.config import _parse_config_dict, get_default_config_path
from beads_query.exceptions import ConfigError, QueryError
from beads_query.query import parse_query
from beads_query.utils.output import error, info, query_error, success, warning

# ``key = value`` lines of the example config, commented out or not.
_SETTING_RE = re.compile(r"^#?[ \t]*(\w+)[ \t]*=.*$", re.MULTILINE)


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("beads_query").joinpath("config.example.toml").read_text()


def render_config(template: str, **settings: Any) -> str:
    """Fill settings into the example config text.

    Each keyword names a key of the template (``issues_file``, ``default``,
    ``timezone``, ...). A value of None keeps the template's line as it
    is; any other value replaces the line, uncommenting it if needed.
    Comments and section layout are preserved.
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        value = settings.get(key)
        if value is None:
            return match.group(0)
        return tomli_w.dumps({key: value}).strip()

    return _SETTING_RE.sub(replace, template)


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/beads-query/config.toml)",
)
@click.option(
    "--issues",
    "issues_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Issues file to query (default: .beads/issues.jsonl here or in a parent directory)",
)
@click.option(
    "--timezone",
    default=None,
    help="IANA time zone for today, this-week, ... (default: UTC)",
)
@click.option(
    "--default-query",
    default=None,
    help="Query used by 'search' when none is given",
)
@pass_context
def cli(
    ctx: Context,
    force: bool,
    output: Path | None,
    issues_file: Path | None,
    timezone: str | None,
    default_query: str | None,
) -> None:
    """Create a configuration file.

    The file is based on the commented example config. Settings given as
    options are filled in, and the result is validated before it is
    written. The issues file the config resolves to is reported.

    Examples:

    \b
      # Query .beads/issues.jsonl of the current project
      beads-query init-config

    \b
      # Fixed issues file and open work by default
      beads-query init-config --issues ~/work/app/.beads/issues.jsonl \\
          --default-query 'status:open,in_progress sort by: priority'

    \b
      # Write somewhere else, replacing an existing file
      beads-query init-config --output ./beads-query.toml --force
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(1)

    if default_query is not None:
        try:
            parse_query(default_query)
        except QueryError as e:
            query_error(default_query, f"Invalid default query: {e}", e.position)
            raise SystemExit(1)

    content = render_config(
        _load_example_config(),
        issues_file=str(issues_file.expanduser()) if issues_file is not None else None,
        timezone=timezone,
        default=default_query,
    )

    try:
        config = _parse_config_dict(tomllib.loads(content), config_path)
        warnings = config.validate()
    except ConfigError as e:
        error(str(e))
        raise SystemExit(EXIT_CONFIG_ERROR)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        config_path.write_text(content)
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1)

    success(f"Created config file: {config_path}")
    if not ctx.quiet:
        info(f"Issues file: {escape(str(config.issues_file))}")
        for warn in warnings:
            warning(warn)
