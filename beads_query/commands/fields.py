"""List queryable fields."""

from __future__ import annotations

import click

from beads_query.query import TEXT_SEARCHABLE, QueryField
from beads_query.utils.output import console, create_table


@click.command("fields")
def cli() -> None:
    """List the fields a query can filter and sort on.

    Fields marked with * are searched by bare words (e.g. ``login``
    matches issues with "login" in any of them).
    """
    table = create_table(show_header=True, header_style="bold")
    table.add_column("Field", style="query.field")
    table.add_column("Type")
    table.add_column("Aliases")
    table.add_column("Text", justify="center")

    for field in QueryField:
        table.add_row(
            field.field_name,
            field.field_type.value,
            ", ".join(sorted(field.aliases)),
            "*" if field in TEXT_SEARCHABLE else "",
        )

    console.print(table)
