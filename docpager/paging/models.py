"""
Request-scoped value types for the pagination engine.

These are plain dataclasses built once per request and thrown away with
the response. The response envelope lives in results.py.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from docpager.paging.errors import InvalidSortError, MissingFieldError, PaginationOptionsError


# ---------------------------------------------------------------------------
# Directions
# ---------------------------------------------------------------------------


class SortDirection(int, Enum):
    """Per-field sort order, valued as the driver expects (1 / -1)."""

    ASCENDING = 1
    DESCENDING = -1

    @classmethod
    def parse(cls, value: Any) -> "SortDirection":
        """Accept 1/-1, "asc"/"desc", "ascending"/"descending" or a SortDirection."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in ("asc", "ascending", "1"):
                return cls.ASCENDING
            if normalized in ("desc", "descending", "-1"):
                return cls.DESCENDING
        elif isinstance(value, int) and not isinstance(value, bool):
            if value == 1:
                return cls.ASCENDING
            if value == -1:
                return cls.DESCENDING
        raise InvalidSortError(f"Unknown sort direction: {value!r}")

    def flipped(self) -> "SortDirection":
        return SortDirection.DESCENDING if self is SortDirection.ASCENDING else SortDirection.ASCENDING


class Traversal(str, Enum):
    """Which side of the anchor a page is read from."""

    FORWARD = "after"
    BACKWARD = "before"


# ---------------------------------------------------------------------------
# Sort fields and anchors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SortField:
    """One (path, direction) entry of a sort, e.g. ("createdAt", DESCENDING)."""

    path: str
    direction: SortDirection = SortDirection.ASCENDING

    def effective_direction(self, traversal: Traversal) -> SortDirection:
        """Direction the store must scan in to move along *traversal*."""
        if traversal is Traversal.BACKWARD:
            return self.direction.flipped()
        return self.direction


@dataclass(frozen=True)
class Anchor:
    """A decoded cursor: the boundary document's key tuple and the side to read."""

    values: tuple[Any, ...]
    traversal: Traversal = Traversal.FORWARD


_MISSING = object()


def resolve_path(document: Mapping[str, Any], path: str) -> Any:
    """
    Read a dotted *path* from a (possibly nested) document.

    An explicit None is returned as-is; an absent key raises MissingFieldError.
    """
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping):
            raise MissingFieldError(path)
        current = current.get(part, _MISSING)
        if current is _MISSING:
            raise MissingFieldError(path)
    return current


# ---------------------------------------------------------------------------
# Caller options
# ---------------------------------------------------------------------------


@dataclass
class PaginateOptions:
    """
    What the caller asks for.

    ``sort`` accepts anything parse_sort() understands. ``limit`` is left raw
    here and coerced by the configured limit policy. ``after`` and ``before``
    are opaque tokens from a previous page's end/start cursor.
    """

    sort: Any = ()
    limit: Any = None
    after: Optional[str] = None
    before: Optional[str] = None

    def __post_init__(self) -> None:
        if self.after and self.before:
            raise PaginationOptionsError("Pass either 'after' or 'before', not both")

    @property
    def cursor(self) -> Optional[str]:
        return self.after or self.before

    @property
    def traversal(self) -> Traversal:
        return Traversal.BACKWARD if self.before else Traversal.FORWARD
