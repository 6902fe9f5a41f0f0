"""
Exception taxonomy for the pagination engine.

Caller mistakes (bad sort, bad token, bad options) subclass ValueError so
web layers can map them to a 400 without importing this module. Driver
errors are never wrapped; they reach the caller unchanged.
"""

from __future__ import annotations


def _describe(keys: tuple[tuple[str, int], ...]) -> str:
    return ", ".join(f"{path} {'desc' if direction == -1 else 'asc'}" for path, direction in keys)


class PaginationError(Exception):
    """Base class for every error raised by docpager."""


class InvalidSortError(PaginationError, ValueError):
    """The requested sort is empty, malformed, or lists a field twice."""


class InvalidCursorError(PaginationError, ValueError):
    """A pagination token could not be decoded."""


class CursorSchemaMismatchError(InvalidCursorError):
    """
    A token was issued for a different sort than the one requested.

    ``expected`` and ``actual`` are (path, direction) pairs, so a token from
    the same fields sorted the other way is rejected too.
    """

    def __init__(
        self,
        expected: tuple[tuple[str, int], ...],
        actual: tuple[tuple[str, int], ...],
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Cursor was issued for sort {_describe(actual)}, not {_describe(expected)}"
        )


class MissingFieldError(PaginationError, LookupError):
    """A document lacks a field the sort plan orders by."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document has no value for sort field {path!r}")


class PaginationOptionsError(PaginationError, ValueError):
    """Conflicting or unsupported pagination options."""
