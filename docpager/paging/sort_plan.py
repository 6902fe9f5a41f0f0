"""
Sort plan: the caller's ordering plus a unique tie-break field.

Keyset pagination needs a strict total order, otherwise two documents with
equal sort keys straddling a page boundary make the cursor ambiguous. The
plan guarantees that by always ending on a unique field (``_id`` unless
configured otherwise).

Accepted sort inputs (see parse_sort):
* a sequence of SortField
* a sequence of (path, direction) pairs
* strings: "createdAt", "-createdAt", "createdAt:desc"
* a mapping {path: direction}, as passed to the driver
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from docpager.paging.errors import InvalidSortError
from docpager.paging.models import SortDirection, SortField, Traversal, resolve_path

logger = logging.getLogger(__name__)


def _parse_entry(entry: Any) -> SortField:
    if isinstance(entry, SortField):
        return entry
    if isinstance(entry, str):
        text = entry.strip()
        if text.startswith("-"):
            path, direction = text[1:], SortDirection.DESCENDING
        elif ":" in text:
            path, _, raw = text.partition(":")
            direction = SortDirection.parse(raw)
        else:
            path, direction = text, SortDirection.ASCENDING
    elif isinstance(entry, (tuple, list)) and len(entry) == 2:
        path, direction = entry[0], SortDirection.parse(entry[1])
    else:
        raise InvalidSortError(f"Cannot interpret sort entry: {entry!r}")

    if not isinstance(path, str) or not path.strip():
        raise InvalidSortError(f"Sort field path must be a non-empty string, got {path!r}")
    return SortField(path=path.strip(), direction=direction)


def parse_sort(spec: Any) -> list[SortField]:
    """Normalize any accepted sort input into an ordered list of SortField."""
    if spec is None:
        return []
    if isinstance(spec, (str, SortField)):
        spec = [spec]
    elif isinstance(spec, Mapping):
        spec = list(spec.items())
    elif not isinstance(spec, Iterable):
        raise InvalidSortError(f"Cannot interpret sort: {spec!r}")
    return [_parse_entry(entry) for entry in spec]


@dataclass(frozen=True)
class SortPlan:
    """An immutable, tie-broken ordering shared by every stage of one request."""

    fields: tuple[SortField, ...]

    @classmethod
    def build(
        cls,
        requested: Any,
        tie_break: str = "_id",
        default: Any = None,
    ) -> "SortPlan":
        """
        Build a plan from *requested*, falling back to *default* when empty.

        Raises InvalidSortError if both are empty, if a path repeats, or if
        the tie-break field appears anywhere but last.
        """
        fields = parse_sort(requested)
        if not fields:
            fields = parse_sort(default)
        if not fields:
            raise InvalidSortError("A sort is required and no default sort is configured")

        seen: set[str] = set()
        for f in fields:
            if f.path in seen:
                raise InvalidSortError(f"Sort field {f.path!r} is listed more than once")
            seen.add(f.path)

        if fields[-1].path != tie_break:
            if tie_break in seen:
                raise InvalidSortError(
                    f"Tie-break field {tie_break!r} must be the last sort field"
                )
            fields.append(SortField(tie_break, SortDirection.ASCENDING))

        plan = cls(tuple(fields))
        logger.debug("Sort plan: %s", plan)
        return plan

    def __iter__(self) -> Iterator[SortField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __str__(self) -> str:
        return ", ".join(
            f"{f.path} {'asc' if f.direction is SortDirection.ASCENDING else 'desc'}"
            for f in self.fields
        )

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(f.path for f in self.fields)

    @property
    def keys(self) -> tuple[tuple[str, int], ...]:
        """(path, direction) pairs as recorded in cursor tokens."""
        return tuple((f.path, int(f.direction)) for f in self.fields)

    def sort_spec(self, traversal: Traversal = Traversal.FORWARD) -> list[tuple[str, int]]:
        """The ``cursor.sort()`` argument for reading along *traversal*."""
        return [(f.path, int(f.effective_direction(traversal))) for f in self.fields]

    def sort_stage(self, traversal: Traversal = Traversal.FORWARD) -> dict[str, int]:
        """The body of a ``$sort`` aggregation stage."""
        return dict(self.sort_spec(traversal))

    def values_of(self, document: Mapping[str, Any]) -> tuple[Any, ...]:
        """Extract the document's key tuple in plan order (MissingFieldError if absent)."""
        return tuple(resolve_path(document, f.path) for f in self.fields)
