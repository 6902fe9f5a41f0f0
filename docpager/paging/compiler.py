"""
Query and pipeline compilation.

Both functions are pure: they copy their inputs and never touch the store.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from docpager.paging.models import Traversal
from docpager.paging.sort_plan import SortPlan

logger = logging.getLogger(__name__)


def compile_find_query(
    filter: Optional[Mapping[str, Any]],
    predicate: Mapping[str, Any],
) -> dict[str, Any]:
    """Combine the caller's filter with the directional predicate for ``find()``."""
    query = {"$and": [dict(predicate), dict(filter or {})]}
    logger.debug("Compiled find query: %s", query)
    return query


def compile_pipeline(
    pipeline_before: Sequence[Mapping[str, Any]],
    plan: SortPlan,
    predicate: Mapping[str, Any],
    traversal: Traversal = Traversal.FORWARD,
    fetch_size: int = 0,
    pipeline_after: Optional[Sequence[Mapping[str, Any]]] = None,
) -> list[dict[str, Any]]:
    """
    Layer pagination onto an aggregation pipeline.

    The $match/$sort/$limit block goes between *pipeline_before*, which
    must produce every sort field, and *pipeline_after*, which only sees the
    window. ``fetch_size`` 0 means no $limit.
    """
    pipeline: list[dict[str, Any]] = [dict(stage) for stage in pipeline_before]
    pipeline.append({"$match": dict(predicate)})
    pipeline.append({"$sort": plan.sort_stage(traversal)})
    if fetch_size > 0:
        pipeline.append({"$limit": fetch_size})
    pipeline.extend(dict(stage) for stage in (pipeline_after or []))

    logger.debug("Compiled pipeline (%d stages): %s", len(pipeline), pipeline)
    return pipeline


def compile_count_pipeline(pipeline_before: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Pipeline counting every document *pipeline_before* yields, ignoring the window."""
    return [dict(stage) for stage in pipeline_before] + [{"$count": "count"}]
