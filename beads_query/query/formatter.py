"""Render a Query back to canonical query text."""

from __future__ import annotations

import re

from beads_query.query.ast_nodes import (
    AndNode,
    ContainsNode,
    EqualsNode,
    HasNode,
    InNode,
    NotNode,
    OrNode,
    Query,
    QueryNode,
    QueryNodeVisitor,
    RangeNode,
    SortDirection,
)
from beads_query.query.tokens import KEYWORDS
from beads_query.query.values import QueryValue, RelativeDateSpec, StringValue, TimestampValue

_BARE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")

# Words that would not read back as plain strings when left unquoted.
_RESERVED_WORDS = frozenset(KEYWORDS) | {"sort", "null", "none", "unassigned"}


def _needs_quotes(text: str) -> bool:
    if not _BARE_RE.match(text):
        return True
    return text.lower() in _RESERVED_WORDS or RelativeDateSpec.from_string(text) is not None


def _quote(text: str) -> str:
    if not _needs_quotes(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _format_value(value: QueryValue) -> str:
    if isinstance(value, StringValue):
        return _quote(value.value)
    if isinstance(value, TimestampValue) and not value.date_only:
        return f'"{value}"'
    return str(value)


class _QueryFormatter(QueryNodeVisitor[str]):
    """Formats nodes, adding parentheses only where precedence needs them.

    AND and OR chains are left-deep, so their spines are walked in a loop.
    """

    def visit_and(self, node: AndNode) -> str:
        operands: list[str] = []
        current: QueryNode = node
        while isinstance(current, AndNode):
            operands.append(self._operand(current.right, (AndNode, OrNode)))
            current = current.left
        operands.append(self._operand(current, OrNode))
        return " AND ".join(reversed(operands))

    def visit_or(self, node: OrNode) -> str:
        operands: list[str] = []
        current: QueryNode = node
        while isinstance(current, OrNode):
            operands.append(self._operand(current.right, OrNode))
            current = current.left
        operands.append(current.accept(self))
        return " OR ".join(reversed(operands))

    def visit_not(self, node: NotNode) -> str:
        return f"NOT {self._operand(node.child, (AndNode, OrNode))}"

    def visit_equals(self, node: EqualsNode) -> str:
        return f"{node.field}:{_format_value(node.value)}"

    def visit_in(self, node: InNode) -> str:
        return f"{node.field}:{','.join(_format_value(v) for v in node.values)}"

    def visit_range(self, node: RangeNode) -> str:
        return f"{node.field}:{_format_value(node.min)}..{_format_value(node.max)}"

    def visit_contains(self, node: ContainsNode) -> str:
        if node.field is None:
            return _quote(node.value)
        return f"{node.field}:*{_quote(node.value)}*"

    def visit_has(self, node: HasNode) -> str:
        return f"{node.field}:{_format_value(node.value)}"

    def _operand(self, node: QueryNode, wrap: type | tuple[type, ...]) -> str:
        text = node.accept(self)
        if isinstance(node, wrap):
            return f"({text})"
        return text


def format_node(node: QueryNode) -> str:
    """Render a single filter expression."""
    return node.accept(_QueryFormatter())


def format_query(query: Query) -> str:
    """Render ``query`` so that parsing the result yields an equal Query."""
    parts: list[str] = []
    if query.filter is not None:
        parts.append(format_node(query.filter))
    if query.sort:
        directives = ", ".join(
            f"{d.field} {'desc' if d.direction is SortDirection.DESC else 'asc'}" for d in query.sort
        )
        parts.append(f"sort by: {directives}")
    return " ".join(parts)
