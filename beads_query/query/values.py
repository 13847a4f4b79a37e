"""Typed literal values of the query language."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

from beads_query.exceptions import ValueCoercionError
from beads_query.query.fields import FieldType, QueryField
from beads_query.query.result import Err, Ok, Result


class RelativeDateSpec(Enum):
    """Symbolic dates resolved against the evaluator's clock.

    Each spec covers a calendar period: a day, a Monday-based week or a
    calendar month.
    """

    TODAY = "today"
    YESTERDAY = "yesterday"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this-week"
    LAST_WEEK = "last-week"
    NEXT_WEEK = "next-week"
    THIS_MONTH = "this-month"
    LAST_MONTH = "last-month"
    NEXT_MONTH = "next-month"

    @classmethod
    def from_string(cls, spec: str) -> RelativeDateSpec | None:
        """Parse ``spec`` case-insensitively, with ``-`` or ``_`` separators."""
        normalized = spec.lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        return None


@dataclass(frozen=True)
class StringValue:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class IntValue:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TimestampValue:
    """An absolute instant.

    ``date_only`` marks values written as a calendar date (``2024-01-31``);
    those compare against the whole day rather than the exact instant.
    """

    value: datetime
    date_only: bool = False

    def __str__(self) -> str:
        if self.date_only:
            return self.value.date().isoformat()
        return self.value.isoformat()


@dataclass(frozen=True)
class RelativeDate:
    spec: RelativeDateSpec

    def __str__(self) -> str:
        return self.spec.value


@dataclass(frozen=True)
class NullValue:
    """Matches absent fields (``assignee:null``)."""

    def __str__(self) -> str:
        return "null"


NULL = NullValue()

QueryValue = Union[StringValue, IntValue, TimestampValue, RelativeDate, NullValue]


def _describe(value: QueryValue) -> str:
    return {
        StringValue: "string",
        IntValue: "integer",
        TimestampValue: "timestamp",
        RelativeDate: "relative date",
        NullValue: "null",
    }[type(value)]


def _reject(value: QueryValue, kind: str, field: QueryField) -> Err:
    return Err(
        ValueCoercionError(
            field.field_name, str(value), f"{_describe(value)} is not valid for {kind} field"
        )
    )


def coerce_to_field_type(value: QueryValue, field: QueryField) -> Result[QueryValue]:
    """Convert ``value`` to the representation required by ``field``.

    Returns:
        ``Ok`` with a (possibly new) value, or ``Err`` with a
        ValueCoercionError describing why the value does not fit the field.
        The error carries no position; the parser adds it.
    """
    field_type = field.field_type

    if field_type.is_text:
        if isinstance(value, (StringValue, NullValue)):
            return Ok(value)
        return Ok(StringValue(str(value)))

    if field_type is FieldType.STRING_LIST:
        if isinstance(value, (StringValue, NullValue)):
            return Ok(value)
        if isinstance(value, IntValue):
            return Ok(StringValue(str(value.value)))
        return _reject(value, "list", field)

    if field_type.is_integer:
        if isinstance(value, (IntValue, NullValue)):
            return Ok(value)
        if isinstance(value, StringValue):
            try:
                return Ok(IntValue(int(value.value.strip())))
            except ValueError:
                return Err(ValueCoercionError(field.field_name, value.value, "not an integer"))
        return _reject(value, "integer", field)

    if field_type.is_timestamp:
        if isinstance(value, (TimestampValue, RelativeDate, NullValue)):
            return Ok(value)
        return _reject(value, "timestamp", field)

    if field_type.is_enum:
        # Enum values are stored lowercase, so normalize here
        if isinstance(value, StringValue):
            lowered = value.value.lower()
            return Ok(value if lowered == value.value else StringValue(lowered))
        if isinstance(value, NullValue):
            return Ok(value)
        return _reject(value, "enum", field)

    raise AssertionError(f"Unhandled field type: {field_type}")
