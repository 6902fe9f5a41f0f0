"""
Directional (seek) predicate for composite sort keys.

For a plan [(p1, d1), ..., (pk, dk)] and anchor (a1, ..., ak) the documents
strictly beyond the anchor are

    OR over i in 1..k of:  p1 == a1 AND ... AND p(i-1) == a(i-1) AND pi >eff ai

where >eff is $gt when the field's effective direction is ascending and $lt
when it is descending. Backward traversal flips every field's direction.

MongoDB sorts null (and missing) before every other value, but $gt/$lt
never match null. The per-field comparison therefore special-cases null so
that pages line up with what ``sort()`` returns:

    ascending,  anchor null      ->  {p: {"$ne": None}}
    descending, anchor null      ->  nothing sorts after it, branch dropped
    descending, anchor not null  ->  {"$or": [{p: {"$lt": a}}, {p: None}]}

Comparisons across other BSON types follow the server's type bracketing, so
a sort field should hold one type (plus null) for pages to be gap free.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from docpager.paging.models import Anchor, SortDirection
from docpager.paging.sort_plan import SortPlan

logger = logging.getLogger(__name__)

# Matches no document; accepted both by find() and by $match.
MATCH_NOTHING: dict[str, Any] = {"$expr": False}


def _beyond(path: str, value: Any, direction: SortDirection) -> Optional[dict[str, Any]]:
    """Filter for values of *path* strictly after *value* in *direction*, or None if none can be."""
    if direction is SortDirection.ASCENDING:
        if value is None:
            return {path: {"$ne": None}}
        return {path: {"$gt": value}}

    if value is None:
        return None
    return {"$or": [{path: {"$lt": value}}, {path: None}]}


def build_directional_predicate(plan: SortPlan, anchor: Optional[Anchor]) -> dict[str, Any]:
    """
    Build the filter selecting documents strictly after/before *anchor*.

    Returns ``{}`` for a first page (no anchor). The anchor must already be
    validated against *plan* (same arity), which CursorCodec.decode does.
    """
    if anchor is None:
        return {}
    if len(anchor.values) != len(plan):
        raise ValueError(
            f"Anchor has {len(anchor.values)} values but the sort has {len(plan)} fields"
        )

    branches: list[dict[str, Any]] = []
    equal_prefix: dict[str, Any] = {}

    for field, value in zip(plan.fields, anchor.values):
        clause = _beyond(field.path, value, field.effective_direction(anchor.traversal))
        if clause is not None:
            # Paths are unique and operator keys start with "$", so the merge never collides
            branches.append({**equal_prefix, **clause})
        equal_prefix[field.path] = {"$eq": value}

    if not branches:
        predicate = dict(MATCH_NOTHING)
    elif len(branches) == 1:
        predicate = branches[0]
    else:
        predicate = {"$or": branches}

    logger.debug("Directional predicate (%s): %s", anchor.traversal.value, predicate)
    return predicate
