"""Print completion candidates for a partial query."""

from __future__ import annotations

import click

from beads_query.query.completion import get_completions


@click.command("complete")
@click.argument("text", default="")
@click.option(
    "--cursor",
    type=click.IntRange(min=0),
    default=None,
    help="Cursor offset in TEXT (default: end of text)",
)
@click.option(
    "--plain",
    is_flag=True,
    default=False,
    help="Print only the candidate text, one per line",
)
def cli(text: str, cursor: int | None, plain: bool) -> None:
    """Suggest completions for a partially typed query.

    Prints one candidate per line as ``text<TAB>category<TAB>hint``,
    suitable for shell completion scripts and editor integrations.

    \b
    Examples:
      beads-query complete "status:"
      beads-query complete "pri"
      beads-query complete "sort by: up"
    """
    for suggestion in get_completions(text, cursor):
        if plain:
            click.echo(suggestion.text)
        else:
            click.echo(f"{suggestion.text}\t{suggestion.type_text}\t{suggestion.tail_text.strip()}")
