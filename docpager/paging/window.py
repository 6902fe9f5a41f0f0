"""
Window sizing and the over-fetching read.

The fetcher asks the store for one row more than the page size. If that
extra row comes back there is another page in the direction of travel, so
no count query or second round trip is needed to fill in has_next_page /
has_previous_page.
"""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from docpager.config.settings import PaginationSettings
from docpager.paging.models import Traversal
from docpager.paging.sort_plan import SortPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Window:
    """Resolved page size for one request."""

    limit: int
    unbounded: bool = False

    @property
    def fetch_size(self) -> int:
        """Rows to request from the store; 0 is the driver's "no limit"."""
        return 0 if self.unbounded else self.limit + 1


def resolve_limit(limit: Any, settings: PaginationSettings) -> Window:
    """
    Apply the limit policy.

    * not a number (None, bool, str, NaN), or negative -> default_limit
    * 0 -> unbounded, unless forbid_unbounded_fetch, then default_limit
    * floats are truncated
    """
    default = Window(limit=settings.default_limit)

    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        return default
    if isinstance(limit, float):
        if math.isnan(limit) or math.isinf(limit):
            return default
        limit = int(limit)
    if limit < 0:
        return default
    if limit == 0:
        if settings.forbid_unbounded_fetch:
            logger.debug("limit=0 with unbounded fetches forbidden; using %d", settings.default_limit)
            return default
        return Window(limit=0, unbounded=True)
    return Window(limit=limit)


class WindowFetcher:
    """Runs the compiled read against a Motor / PyMongo async collection."""

    async def fetch_find(
        self,
        collection: Any,
        query: Mapping[str, Any],
        plan: SortPlan,
        traversal: Traversal,
        window: Window,
        projection: Optional[Mapping[str, Any]] = None,
        **find_options: Any,
    ) -> list[Any]:
        """``find(query).sort(plan).limit(limit + 1)`` and drain the cursor."""
        cursor = collection.find(query, projection, **find_options)
        cursor = cursor.sort(plan.sort_spec(traversal)).limit(window.fetch_size)
        documents = await cursor.to_list(length=None)
        logger.debug(
            "Fetched %d documents (fetch_size=%d) from %s",
            len(documents), window.fetch_size, getattr(collection, "name", collection),
        )
        return documents

    async def fetch_aggregate(
        self,
        collection: Any,
        pipeline: Sequence[Mapping[str, Any]],
    ) -> list[Any]:
        """Run *pipeline* and drain the result cursor."""
        cursor = collection.aggregate(list(pipeline))
        # Motor returns the cursor directly, PyMongo's async API a coroutine
        if inspect.isawaitable(cursor):
            cursor = await cursor
        documents = await cursor.to_list(length=None)
        logger.debug(
            "Aggregated %d documents from %s",
            len(documents), getattr(collection, "name", collection),
        )
        return documents
