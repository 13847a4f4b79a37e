"""Command-line interface for beads-query."""

from __future__ import annotations

import os
from pathlib import Path

import click

from beads_query import __version__
from beads_query.config import Config, load_config
from beads_query.exceptions import ConfigError
from beads_query.utils.output import (
    configure_logging,
    error,
    set_color,
    set_pager,
    set_verbosity,
    warning,
)

EXIT_CONFIG_ERROR = 3

CONFIG_ENVVAR = "BEADS_QUERY_CONFIG"
ISSUES_ENVVAR = "BEADS_QUERY_ISSUES"


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False
        self.pager: bool | None = None  # None = auto


pass_context = click.make_pass_decorator(Context, ensure=True)


def _color_disabled(no_color: bool) -> bool:
    """--no-color or a set NO_COLOR variable (https://no-color.org)."""
    return no_color or os.environ.get("NO_COLOR") is not None


def _use_issues_file(config: Config, issues: Path, warnings: list[str]) -> list[str]:
    """Point ``config`` at ``issues``, dropping warnings about the configured file."""
    config.issues_file = issues.expanduser().resolve()
    return [w for w in warnings if not w.startswith("Issues file not found")]


def _report(warnings: list[str], *, verbose: bool) -> None:
    # A missing config file is the normal case, so only mention it when verbose
    for warn in warnings:
        if warn.startswith("No config file found") and not verbose:
            continue
        warning(warn)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=CONFIG_ENVVAR,
    help=f"Path to config file (default: ~/.config/beads-query/config.toml, env: {CONFIG_ENVVAR})",
)
@click.option(
    "--issues",
    "-i",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=ISSUES_ENVVAR,
    help=f"Path to the Beads issues.jsonl file, overrides the config (env: {ISSUES_ENVVAR})",
)
@click.option("--no-color", is_flag=True, default=False, help="Disable colored output")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
@click.option(
    "--debug", is_flag=True, default=False, help="Enable debug output (implies --verbose)"
)
@click.option("--quiet", "-q", is_flag=True, default=False, help="Suppress non-error output")
@click.option("--pager/--no-pager", default=None, help="Force pager on/off (default: auto-detect)")
@click.version_option(version=__version__, prog_name="beads-query")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    issues: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
    pager: bool | None,
) -> None:
    """beads-query: Filter and sort Beads issues with a small query language.

    Queries combine field filters, free text and an optional sort clause.
    Terms next to each other are joined with AND; use OR, NOT and
    parentheses for anything else.

    Issues are read from .beads/issues.jsonl in the current directory or
    the nearest parent that has one, unless the config or --issues names
    another file.

    Examples:

    \b
        beads-query search status:open priority:0..1
        beads-query search 'label:frontend or label:ui sort by: updated desc'
        beads-query search created:this-week not assignee:null
        beads-query explain '(a or b) type:bug'
    """
    app_ctx = ctx.ensure_object(Context)
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet
    app_ctx.pager = pager

    set_verbosity(verbose=verbose, debug=debug)
    configure_logging(debug=debug)
    set_pager(pager)

    color_disabled = _color_disabled(no_color)
    if color_disabled:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
    except ConfigError as e:
        error(str(e), hint="Check the file or recreate it with: beads-query init-config --force")
        ctx.exit(EXIT_CONFIG_ERROR)
        return

    if issues is not None:
        warnings = _use_issues_file(loaded_config, issues, warnings)
    app_ctx.config = loaded_config

    if not color_disabled and not loaded_config.colored_output:
        set_color(False)

    if not quiet:
        _report(warnings, verbose=app_ctx.verbose)


def register_commands() -> None:
    """Register all commands from the commands package."""
    from beads_query.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
