"""Rich console output helpers for beads-query."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from beads_query.query.lexer import Lexer
from beads_query.query.tokens import TokenType

# Module-level verbosity flags (set by cli.py after argument parsing)
_verbose_enabled: bool = False
_debug_enabled: bool = False

# Module-level pager setting (None = auto, True = forced, False = disabled)
_pager_mode: bool | None = None

THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "path": "blue underline",
        "issue.id": "bold",
        "issue.title": "italic",
        "priority.high": "bold red",
        "priority.normal": "yellow",
        "priority.low": "dim",
        "query.field": "bold cyan",
        "query.keyword": "bold magenta",
        "query.string": "green",
        "query.number": "blue",
        "query.operator": "dim",
        "query.error": "bold white on red",
    }
)

# Global console instances
console = Console(theme=THEME, stderr=False)
error_console = Console(theme=THEME, stderr=True)


def set_verbosity(*, verbose: bool = False, debug: bool = False) -> None:
    """Configure module-level verbosity flags.

    Called from the CLI entry point after argument parsing.
    """
    global _verbose_enabled, _debug_enabled
    _verbose_enabled = verbose or debug  # debug implies verbose
    _debug_enabled = debug


def configure_logging(*, debug: bool = False) -> None:
    """Route library logging to stderr; DEBUG with --debug, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
        force=True,
    )


def set_color(enabled: bool) -> None:
    """Enable or disable color on both console instances."""
    console.no_color = not enabled
    error_console.no_color = not enabled


def set_pager(mode: bool | None) -> None:
    """Configure pager mode.

    Args:
        mode: True = always, False = never, None = auto (TTY + content > height).
    """
    global _pager_mode
    _pager_mode = mode


def _find_pager() -> list[str]:
    """Determine the pager command: $PAGER, else ``less -RFS``."""
    pager_env = os.environ.get("PAGER")
    if pager_env:
        return pager_env.split()

    return ["less", "-RFS"]


def pager_print(content: str) -> None:
    """Print content through a pager if appropriate.

    Pages only if stdout is a TTY and content exceeds the terminal
    height, unless forced on or off with ``set_pager``.
    """
    lines = content.count("\n")
    term_height = shutil.get_terminal_size().lines

    use_pager = _pager_mode
    if use_pager is None:
        use_pager = sys.stdout.isatty() and lines > term_height

    if not use_pager:
        sys.stdout.write(content)
        sys.stdout.flush()
        return

    try:
        env = os.environ.copy()
        env.setdefault("LESSCHARSET", "utf-8")
        proc = subprocess.Popen(
            _find_pager(),
            stdin=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            env=env,
        )
        proc.communicate(input=content)
    except (OSError, subprocess.SubprocessError):
        # Pager failed, fall back to direct output
        sys.stdout.write(content)
        sys.stdout.flush()


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def warning(message: str) -> None:
    """Print a warning message to stderr."""
    error_console.print(f"[warning]Warning:[/warning] {message}")


def error(message: str, hint: str | None = None) -> None:
    """Print an error message to stderr.

    Args:
        message: The error message.
        hint: Optional hint for resolution.
    """
    error_console.print(f"[error]Error:[/error] {escape(message)}")
    if hint:
        error_console.print(f"  [info]Hint:[/info] {hint}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def verbose(message: str) -> None:
    """Print a message only when verbose mode is enabled."""
    if _verbose_enabled:
        console.print(f"[info]{message}[/info]")


def debug(message: str) -> None:
    """Print a debug message only when debug mode is enabled."""
    if _debug_enabled:
        error_console.print(f"[warning]\\[DEBUG][/warning] {message}")


def create_table(title: str | None = None, **kwargs: Any) -> Table:
    """Create a styled table.

    Args:
        title: Optional table title.
        **kwargs: Additional Table arguments.

    Returns:
        Rich Table instance.
    """
    return Table(title=title, **kwargs)


def priority_style(priority: int | None) -> str:
    """Style name for a priority value (0 and 1 are high)."""
    if priority is None:
        return ""
    if priority <= 1:
        return "priority.high"
    if priority == 2:
        return "priority.normal"
    return "priority.low"


_TOKEN_STYLES: dict[TokenType, str] = {
    TokenType.STRING: "query.string",
    TokenType.NUMBER: "query.number",
    TokenType.AND: "query.keyword",
    TokenType.OR: "query.keyword",
    TokenType.NOT: "query.keyword",
    TokenType.SORT_BY: "query.keyword",
    TokenType.ASC: "query.keyword",
    TokenType.DESC: "query.keyword",
    TokenType.COLON: "query.operator",
    TokenType.COMMA: "query.operator",
    TokenType.DOT_DOT: "query.operator",
    TokenType.STAR: "query.operator",
    TokenType.ERROR: "query.error",
}


def query_error(text: str, message: str, position: int | None) -> None:
    """Print a query error with the query and a caret under ``position``."""
    error(message)
    if position is None:
        return
    error_console.print(Text("  ").append(highlight_query(text)))
    error_console.print("  " + " " * position + "[error]^[/error]")


def highlight_query(text: str) -> Text:
    """Syntax-highlight a query string.

    Identifiers directly followed by ``:`` are styled as field names;
    ERROR tokens are highlighted so the offending character stands out.
    """
    highlighted = Text(text)
    tokens = Lexer(text).scan()
    for index, token in enumerate(tokens):
        style = _TOKEN_STYLES.get(token.type)
        if token.type is TokenType.IDENTIFIER:
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if following is not None and following.type is TokenType.COLON:
                style = "query.field"
        if style and token.lexeme:
            highlighted.stylize(style, token.position, token.position + len(token.lexeme))
    return highlighted
