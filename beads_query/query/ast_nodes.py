"""AST data classes for parsed queries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Generic, TypeVar, Union, assert_never

from beads_query.query.fields import QueryField
from beads_query.query.values import QueryValue

T = TypeVar("T")


class _Node:
    """Common behaviour of all query nodes."""

    def accept(self, visitor: QueryNodeVisitor[T]) -> T:
        return visitor.visit(self)  # type: ignore[arg-type]


# Logical nodes


@dataclass(frozen=True)
class AndNode(_Node):
    """Both children must match (``status:open AND priority:0``)."""

    left: QueryNode
    right: QueryNode


@dataclass(frozen=True)
class OrNode(_Node):
    """At least one child must match (``status:blocked OR priority:0``)."""

    left: QueryNode
    right: QueryNode


@dataclass(frozen=True)
class NotNode(_Node):
    """Inverts its child (``NOT status:closed``)."""

    child: QueryNode


# Comparison nodes


@dataclass(frozen=True)
class EqualsNode(_Node):
    """Exact match: ``status:open``, ``priority:0``, ``assignee:null``."""

    field: QueryField
    value: QueryValue


@dataclass(frozen=True)
class InNode(_Node):
    """Set membership: ``status:open,in_progress``."""

    field: QueryField
    values: tuple[QueryValue, ...]


@dataclass(frozen=True)
class RangeNode(_Node):
    """Inclusive range: ``priority:0..2``, ``created:last-month..today``."""

    field: QueryField
    min: QueryValue
    max: QueryValue


@dataclass(frozen=True)
class ContainsNode(_Node):
    """Substring search.

    With ``field=None`` every field in TEXT_SEARCHABLE is searched
    (a bare term like ``authentication``); otherwise only ``field``
    (``title:*login*``).
    """

    field: QueryField | None
    value: str
    case_sensitive: bool = False


@dataclass(frozen=True)
class HasNode(_Node):
    """List membership for multi-valued fields: ``label:frontend``."""

    field: QueryField
    value: QueryValue


QueryNode = Union[AndNode, OrNode, NotNode, EqualsNode, InNode, RangeNode, ContainsNode, HasNode]


class QueryNodeVisitor(Generic[T]):
    """Base class for traversals over a QueryNode tree.

    ``visit`` dispatches on the node class; subclasses implement one
    ``visit_*`` method per node type.
    """

    def visit(self, node: QueryNode) -> T:
        match node:
            case AndNode():
                return self.visit_and(node)
            case OrNode():
                return self.visit_or(node)
            case NotNode():
                return self.visit_not(node)
            case EqualsNode():
                return self.visit_equals(node)
            case InNode():
                return self.visit_in(node)
            case RangeNode():
                return self.visit_range(node)
            case ContainsNode():
                return self.visit_contains(node)
            case HasNode():
                return self.visit_has(node)
            case _:
                assert_never(node)

    def visit_and(self, node: AndNode) -> T:
        raise NotImplementedError

    def visit_or(self, node: OrNode) -> T:
        raise NotImplementedError

    def visit_not(self, node: NotNode) -> T:
        raise NotImplementedError

    def visit_equals(self, node: EqualsNode) -> T:
        raise NotImplementedError

    def visit_in(self, node: InNode) -> T:
        raise NotImplementedError

    def visit_range(self, node: RangeNode) -> T:
        raise NotImplementedError

    def visit_contains(self, node: ContainsNode) -> T:
        raise NotImplementedError

    def visit_has(self, node: HasNode) -> T:
        raise NotImplementedError


class SortDirection(Enum):
    """Sort direction of a single sort key."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def from_string(cls, direction: str) -> SortDirection | None:
        return {
            "asc": cls.ASC,
            "ascending": cls.ASC,
            "desc": cls.DESC,
            "descending": cls.DESC,
        }.get(direction.lower())


@dataclass(frozen=True)
class SortDirective:
    """One key of a ``sort by:`` clause, e.g. ``updated desc``."""

    field: QueryField
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class Query:
    """A parsed query: an optional filter plus ordered sort directives.

    ``Query(filter=None, sort=())`` matches every record and keeps the
    original order.
    """

    filter: QueryNode | None = None
    sort: tuple[SortDirective, ...] = ()

    EMPTY: ClassVar[Query]

    def matches_all(self) -> bool:
        return self.filter is None and not self.sort

    def has_filter(self) -> bool:
        return self.filter is not None

    def has_sort(self) -> bool:
        return bool(self.sort)


Query.EMPTY = Query()
