"""Explicit success/failure values returned by tokenize and parse."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from beads_query.exceptions import QueryError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result wrapping ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed result carrying the first error encountered."""

    error: QueryError

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise self.error

    def unwrap_or(self, default):
        return default


Result = Union[Ok[T], Err]
