"""Evaluate a Query AST against in-memory issue records."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Any, TypeVar

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
    RangeNode,
    SortDirection,
    SortDirective,
)
from beads_query.query.dates import day_range, ensure_aware, resolve_relative_date
from beads_query.query.fields import TEXT_SEARCHABLE, QueryField
from beads_query.query.values import (
    IntValue,
    NullValue,
    QueryValue,
    RelativeDate,
    StringValue,
    TimestampValue,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current instant in UTC."""
    return datetime.now(UTC)


def extract_field_value(field: QueryField, record: Any) -> Any:
    """Read ``field`` from a record by attribute name (or key, for mappings)."""
    if isinstance(record, Mapping):
        value = record.get(field.attribute)
    else:
        value = getattr(record, field.attribute, None)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return ensure_aware(value)
    return value


class _Evaluation:
    """State of a single ``filter`` call: the instant ``now`` and time zone.

    Relative dates are resolved lazily and memoized, so every node in the
    tree sees the same ranges for the whole call.
    """

    def __init__(self, now: datetime, tz: tzinfo) -> None:
        self.now = now
        self.tz = tz
        self._resolved: dict[RelativeDate, tuple[datetime, datetime]] = {}

    def matches(self, node: QueryNode, record: Any) -> bool:
        match node:
            case AndNode() | OrNode():
                return self._chain(node, record)
            case NotNode(child):
                return not self.matches(child, record)
            case EqualsNode(field, value):
                return self._equals(extract_field_value(field, record), value)
            case InNode(field, values):
                field_value = extract_field_value(field, record)
                return any(self._has(field_value, v) for v in values)
            case RangeNode(field, low, high):
                return self._in_range(extract_field_value(field, record), low, high)
            case ContainsNode():
                return self._contains(node, record)
            case HasNode(field, value):
                return self._has(extract_field_value(field, record), value)
        raise AssertionError(f"Unhandled query node: {node!r}")

    def _chain(self, node: AndNode | OrNode, record: Any) -> bool:
        """Evaluate a left-deep AND/OR chain without recursing down its spine."""
        parents: list[AndNode | OrNode] = []
        while isinstance(node, (AndNode, OrNode)):
            parents.append(node)
            node = node.left

        result = self.matches(node, record)
        for parent in reversed(parents):
            if isinstance(parent, AndNode):
                if result:
                    result = self.matches(parent.right, record)
            elif not result:
                result = self.matches(parent.right, record)
        return result

    # ------------------------------------------------------------------

    def _equals(self, field_value: Any, value: QueryValue) -> bool:
        if isinstance(value, NullValue):
            return field_value is None or field_value == [] or field_value == ()
        if field_value is None:
            return False

        if isinstance(value, StringValue):
            return _text(field_value).lower() == value.value.lower()
        if isinstance(value, IntValue):
            number = _as_int(field_value)
            return number is not None and number == value.value
        if isinstance(value, (TimestampValue, RelativeDate)):
            if not isinstance(field_value, datetime):
                return False
            start, end = self._bounds(value)
            if start == end:
                return field_value == start
            return start <= field_value < end
        return False

    def _in_range(self, field_value: Any, low: QueryValue, high: QueryValue) -> bool:
        if field_value is None:
            return False
        return self._compare(field_value, low, lower=True) and self._compare(
            field_value, high, lower=False
        )

    def _compare(self, field_value: Any, bound: QueryValue, *, lower: bool) -> bool:
        """Test ``bound <= field_value`` (lower) or ``field_value <= bound``."""
        if isinstance(bound, IntValue):
            number = _as_int(field_value)
            if number is None:
                return False
            return number >= bound.value if lower else number <= bound.value
        if isinstance(bound, (TimestampValue, RelativeDate)):
            if not isinstance(field_value, datetime):
                return False
            start, end = self._bounds(bound)
            if lower:
                return field_value >= start
            # Period bounds include their whole period.
            return field_value <= end if start == end else field_value < end
        if isinstance(bound, StringValue):
            text = _text(field_value).lower()
            return text >= bound.value.lower() if lower else text <= bound.value.lower()
        return False

    def _contains(self, node: ContainsNode, record: Any) -> bool:
        fields = (node.field,) if node.field is not None else TEXT_SEARCHABLE
        needle = node.value if node.case_sensitive else node.value.lower()
        for field in fields:
            value = extract_field_value(field, record)
            if value is None:
                continue
            haystack = _text(value)
            if not node.case_sensitive:
                haystack = haystack.lower()
            if needle in haystack:
                return True
        return False

    def _has(self, field_value: Any, value: QueryValue) -> bool:
        if isinstance(field_value, (list, tuple, set, frozenset)):
            if isinstance(value, NullValue):
                return not field_value
            return any(self._equals(item, value) for item in field_value)
        return self._equals(field_value, value)

    def _bounds(self, value: TimestampValue | RelativeDate) -> tuple[datetime, datetime]:
        if isinstance(value, RelativeDate):
            if value not in self._resolved:
                self._resolved[value] = resolve_relative_date(value.spec, self.now, self.tz)
            return self._resolved[value]
        instant = ensure_aware(value.value)
        if value.date_only:
            return day_range(instant.date(), self.tz)
        return instant, instant


def _text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _sort_value(value: Any) -> Any:
    """Comparable form of a field value: text is case-folded, lists by size."""
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value)
    return value


def _compare_records(directives: Sequence[SortDirective], a: Any, b: Any) -> int:
    for directive in directives:
        va = extract_field_value(directive.field, a)
        vb = extract_field_value(directive.field, b)

        # None sorts last in both directions.
        if va is None and vb is None:
            continue
        if va is None:
            return 1
        if vb is None:
            return -1

        ka, kb = _sort_value(va), _sort_value(vb)
        try:
            result = (ka > kb) - (ka < kb)
        except TypeError:
            logger.debug(
                "Sorting %s: comparing %s with %s as text",
                directive.field.field_name,
                type(ka).__name__,
                type(kb).__name__,
            )
            result = (str(ka) > str(kb)) - (str(ka) < str(kb))

        if result:
            return -result if directive.direction is SortDirection.DESC else result
    return 0


class QueryEvaluator:
    """Filter and sort records by a Query.

    Stateless apart from the injected clock and time zone, so one
    instance may be shared between threads.

    Args:
        clock: Zero-argument callable returning the current aware datetime.
            Read once per :meth:`filter` call.
        tz: Time zone used for relative dates and date literals. Defaults
            to the tzinfo of the clock's reading.

    Example::

        evaluator = QueryEvaluator()
        query = parse_query("status:open priority:0..1 sort by: updated desc")
        issues = evaluator.filter(issues, query)
    """

    def __init__(self, clock: Clock | None = None, tz: tzinfo | None = None) -> None:
        self._clock = clock or system_clock
        self._tz = tz

    def _evaluation(self) -> _Evaluation:
        now = ensure_aware(self._clock())
        return _Evaluation(now, self._tz or now.tzinfo or UTC)

    def filter(self, records: Iterable[R], query: Query) -> list[R]:
        """Return the records matching ``query``, sorted by its directives.

        The input is never mutated; without sort directives the original
        order is preserved.
        """
        items = list(records)
        if query.filter is not None:
            evaluation = self._evaluation()
            matched = [r for r in items if evaluation.matches(query.filter, r)]
        else:
            matched = items

        if query.sort:
            matched.sort(key=functools.cmp_to_key(functools.partial(_compare_records, query.sort)))

        logger.debug("Filtered %d/%d records", len(matched), len(items))
        return matched

    def matches(self, node: QueryNode, record: Any) -> bool:
        """Evaluate a single node against a single record."""
        return self._evaluation().matches(node, record)


def filter_records(records: Iterable[R], query: Query, clock: Clock | None = None) -> list[R]:
    """Filter and sort ``records`` by ``query``. See :class:`QueryEvaluator`."""
    return QueryEvaluator(clock=clock).filter(records, query)
