"""Show how a query is tokenized and parsed."""

from __future__ import annotations

import click
from rich.markup import escape

from beads_query.cli import Context, pass_context
from beads_query.exceptions import QueryError
from beads_query.query import Lexer, TokenType, format_query, parse_query
from beads_query.utils.output import (
    console,
    create_table,
    highlight_query,
    query_error,
)

EXIT_SUCCESS = 0
EXIT_QUERY_ERROR = 1


@click.command("explain")
@click.argument("query", nargs=-1, required=True)
@click.option(
    "--tokens/--no-tokens",
    default=True,
    help="Show the token table (default: on)",
)
@pass_context
def cli(ctx: Context, query: tuple[str, ...], tokens: bool) -> None:
    """Show the tokens and canonical form of a query.

    Useful to check how terms are grouped: the canonical form makes
    implicit AND and operator precedence explicit with parentheses.

    \b
    Examples:
      beads-query explain "a or b c"
      beads-query explain 'not (status:closed or label:wontfix)'
    """
    query_string = " ".join(query)

    if tokens:
        table = create_table(title="Tokens", show_header=True, header_style="bold")
        table.add_column("Pos", justify="right")
        table.add_column("Type")
        table.add_column("Lexeme")
        table.add_column("Value")
        for token in Lexer(query_string).scan():
            if token.type is TokenType.EOF:
                continue
            style = "error" if token.type is TokenType.ERROR else None
            literal = "" if token.literal is None else str(token.literal)
            table.add_row(
                str(token.position),
                token.type.name,
                escape(token.lexeme),
                escape(literal),
                style=style,
            )
        console.print(table)

    try:
        parsed = parse_query(query_string)
    except QueryError as e:
        query_error(query_string, str(e), e.position)
        raise SystemExit(EXIT_QUERY_ERROR)

    console.print("[bold]Query:[/bold]", highlight_query(query_string))
    if parsed.matches_all():
        console.print("[bold]Canonical:[/bold] [info](matches every issue)[/info]")
    else:
        console.print("[bold]Canonical:[/bold]", highlight_query(format_query(parsed)))

    raise SystemExit(EXIT_SUCCESS)
