"""Search issues with the query language."""

from __future__ import annotations

import io
import json
import logging
from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape

from beads_query.cli import Context, pass_context
from beads_query.exceptions import IssueStoreError, QueryError
from beads_query.model import Issue, load_issues
from beads_query.query import QueryEvaluator, format_query, parse_query
from beads_query.utils.output import (
    THEME,
    console,
    create_table,
    debug,
    error,
    info,
    pager_print,
    priority_style,
    query_error,
    verbose,
)

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_NO_RESULTS = 0
EXIT_QUERY_ERROR = 1
EXIT_ISSUES_ERROR = 2
EXIT_CONFIG_ERROR = 3

# Table configuration per column (same names as config.AVAILABLE_COLUMNS)
COLUMN_DEFS: dict[str, dict] = {
    "id": {"header": "ID", "style": "issue.id", "justify": "left"},
    "priority": {"header": "Pri", "style": None, "justify": "right"},
    "status": {"header": "Status", "style": None, "justify": "left"},
    "type": {"header": "Type", "style": None, "justify": "left"},
    "assignee": {"header": "Assignee", "style": None, "justify": "left"},
    "title": {"header": "Title", "style": "issue.title", "justify": "left"},
    "labels": {"header": "Labels", "style": None, "justify": "left"},
    "created": {"header": "Created", "style": None, "justify": "left"},
    "updated": {"header": "Updated", "style": None, "justify": "left"},
    "due": {"header": "Due", "style": None, "justify": "left"},
    "closed": {"header": "Closed", "style": None, "justify": "left"},
    "estimated": {"header": "Est.", "style": None, "justify": "right"},
    "creator": {"header": "Creator", "style": None, "justify": "left"},
    "repo": {"header": "Repo", "style": None, "justify": "left"},
}


def _format_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def _get_cell_value(issue: Issue, col: str) -> str:
    """Get the formatted cell value for a column."""
    if col == "id":
        return issue.id
    elif col == "priority":
        return f"P{issue.priority}"
    elif col == "status":
        return issue.status.value
    elif col == "type":
        return issue.issue_type
    elif col == "assignee":
        return issue.assignee or ""
    elif col == "title":
        return issue.title
    elif col == "labels":
        return ", ".join(issue.labels)
    elif col == "created":
        return _format_date(issue.created_at)
    elif col == "updated":
        return _format_date(issue.updated_at)
    elif col == "due":
        return _format_date(issue.due_date)
    elif col == "closed":
        return _format_date(issue.closed_at)
    elif col == "estimated":
        return "" if issue.estimated_minutes is None else f"{issue.estimated_minutes}m"
    elif col == "creator":
        return issue.created_by
    elif col == "repo":
        return issue.source_repo or ""
    return ""


@click.command("search")
@click.argument("query", nargs=-1)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "ids", "json"]),
    default="table",
    help="Output format (default: table)",
)
@click.option(
    "--limit",
    "-l",
    type=click.IntRange(min=0),
    default=None,
    help="Limit number of results",
)
@click.option(
    "--columns",
    "-C",
    default=None,
    help="Comma-separated list of columns to display (default: from config). "
    f"Available: {', '.join(COLUMN_DEFS)}",
)
@pass_context
def cli(
    ctx: Context,
    query: tuple[str, ...],
    output_format: str,
    limit: int | None,
    columns: str | None,
) -> None:
    """Filter and sort issues.

    QUERY is a query string. Multiple arguments are joined with spaces.
    Without a QUERY the configured default query is used, or every
    issue is listed.

    \b
    Syntax examples:
      beads-query search login bug
      beads-query search status:open,in_progress priority:0..1
      beads-query search "label:frontend or label:ui"
      beads-query search not assignee:null created:this-week
      beads-query search 'title:*crash* sort by: priority asc, updated desc'

    \b
    Output formats:
      --format table   Rich table (default)
      --format ids     One issue id per line (for piping)
      --format json    JSON array of issue objects
    """
    config = ctx.config
    if config is None:
        error("Configuration not loaded")
        raise SystemExit(EXIT_CONFIG_ERROR)

    # Parse column list
    col_list = [c.strip() for c in (columns or config.columns).split(",") if c.strip()]
    for c in col_list:
        if c not in COLUMN_DEFS:
            error(f"Unknown column: {c}", hint=f"Available: {', '.join(COLUMN_DEFS)}")
            raise SystemExit(EXIT_QUERY_ERROR)

    # Join query arguments into single string
    query_string = " ".join(query) if query else config.default_query or ""

    try:
        parsed = parse_query(query_string)
    except QueryError as e:
        query_error(query_string, f"Invalid query: {e}", e.position)
        raise SystemExit(EXIT_QUERY_ERROR)

    canonical = format_query(parsed)
    logger.debug("Parsed query: %s", canonical)
    verbose(f"Query: {escape(canonical)}")

    debug(f"Reading issues from {config.issues_file}")

    try:
        issues = load_issues(config.issues_file)
    except IssueStoreError as e:
        error(str(e), hint="Use --issues or set paths.issues_file in the config")
        raise SystemExit(EXIT_ISSUES_ERROR)

    results = QueryEvaluator(tz=config.tzinfo()).filter(issues, parsed)
    verbose(f"{len(results)} of {len(issues)} issues match")

    if limit is not None:
        results = results[:limit]

    if not results:
        if not ctx.quiet:
            info(f"No results for: {escape(query_string)}")
        raise SystemExit(EXIT_NO_RESULTS)

    if output_format == "table":
        _print_table(results, query_string, col_list, quiet=ctx.quiet)
    elif output_format == "ids":
        _print_ids(results)
    elif output_format == "json":
        _print_json(results)

    raise SystemExit(EXIT_SUCCESS)


def _print_table(
    issues: list[Issue],
    query_string: str,
    col_list: list[str],
    quiet: bool = False,
) -> None:
    """Print results as a Rich table, using pager when appropriate."""
    if not quiet:
        label = escape(query_string) if query_string else "all issues"
        info(f"Search: {label} ({len(issues)} results)")

    table = create_table(
        show_header=True,
        header_style="bold",
    )

    for col in col_list:
        cdef = COLUMN_DEFS[col]
        kwargs: dict = {"justify": cdef["justify"]}
        if cdef["style"]:
            kwargs["style"] = cdef["style"]
        table.add_column(cdef["header"], no_wrap=col != "title", **kwargs)

    for issue in issues:
        row_style = "dim" if issue.status.is_closed() else None
        cells = []
        for col in col_list:
            value = escape(_get_cell_value(issue, col))
            if col == "priority":
                style = priority_style(issue.priority)
                value = f"[{style}]{value}[/{style}]" if style else value
            cells.append(value)
        table.add_row(*cells, style=row_style)

    # Render to buffer so we can route through pager
    buf = io.StringIO()
    render_console = Console(
        file=buf,
        theme=THEME,
        force_terminal=not console.no_color,
        width=console.width,
        no_color=console.no_color,
    )
    render_console.print(table)
    pager_print(buf.getvalue())


def _print_ids(issues: list[Issue]) -> None:
    """Print one issue id per line."""
    for issue in issues:
        click.echo(issue.id)


def _print_json(issues: list[Issue]) -> None:
    """Print results as JSON array."""
    click.echo(json.dumps([issue.to_dict() for issue in issues], indent=2))
