"""
Caller-facing entry points: find_paged, aggregate_paged, explain_paged.

Every call takes the collection explicitly; nothing is registered on a
model or kept between requests. A request runs:

    SortPlan.build -> codec.decode -> build_directional_predicate
        -> compile_find_query | compile_pipeline
        -> WindowFetcher (+ independent count, concurrently)
        -> assemble -> populate

If the caller is cancelled, or either store read fails, the other read is
cancelled and the exception propagates; a partial page is never returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import replace
from typing import Any, Optional

from docpager.config.settings import PaginationSettings, get_settings
from docpager.paging.assembler import assemble
from docpager.paging.compiler import compile_count_pipeline, compile_find_query, compile_pipeline
from docpager.paging.cursor import CursorCodec, get_codec
from docpager.paging.errors import PaginationOptionsError
from docpager.paging.models import Anchor, PaginateOptions
from docpager.paging.populate import Populate, populate as populate_refs
from docpager.paging.predicate import build_directional_predicate
from docpager.paging.results import PaginateResult
from docpager.paging.sort_plan import SortPlan
from docpager.paging.window import Window, WindowFetcher, resolve_limit

logger = logging.getLogger(__name__)

VERBOSITY_MODES = ("queryPlanner", "executionStats", "allPlansExecution")

# find() keyword -> find command field, for explain_paged
_EXPLAIN_FIND_OPTIONS = {
    "hint": "hint",
    "collation": "collation",
    "comment": "comment",
    "max_time_ms": "maxTimeMS",
    "allow_disk_use": "allowDiskUse",
}


def _coerce_options(options: PaginateOptions | Mapping[str, Any]) -> PaginateOptions:
    if isinstance(options, PaginateOptions):
        return options
    if isinstance(options, Mapping):
        unknown = set(options) - {"sort", "limit", "after", "before"}
        if unknown:
            raise PaginationOptionsError(f"Unknown pagination options: {sorted(unknown)}")
        return PaginateOptions(**options)
    raise PaginationOptionsError(f"Expected PaginateOptions or a mapping, got {type(options).__name__}")


async def _with_count(
    read: Awaitable[list[Any]],
    count: Optional[Awaitable[int]],
) -> tuple[list[Any], Optional[int]]:
    """Await the window read and, if given, the count concurrently."""
    if count is None:
        return await read, None

    tasks = [asyncio.ensure_future(read), asyncio.ensure_future(count)]
    try:
        documents, total = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return documents, total


class Paginator:
    """
    Keyset pagination over Motor / PyMongo async collections.

    Holds configuration only, so one instance can serve any number of
    concurrent requests.

    Usage:
        paginator = Paginator()
        page = await paginator.find_paged(
            db.posts,
            PaginateOptions(sort=[("createdAt", "desc")], limit=10),
            filter={"status": "published"},
        )
        next_page = await paginator.find_paged(
            db.posts,
            PaginateOptions(sort=[("createdAt", "desc")], limit=10,
                            after=page.page_info.end_cursor),
            filter={"status": "published"},
        )
    """

    def __init__(
        self,
        settings: Optional[PaginationSettings] = None,
        codec: Optional[CursorCodec] = None,
    ) -> None:
        self.settings = settings or get_settings().pagination
        self.codec = codec or get_codec(self.settings.cursor_codec)
        self._fetcher = WindowFetcher()

    def prepare(
        self,
        options: PaginateOptions | Mapping[str, Any],
    ) -> tuple[PaginateOptions, SortPlan, Optional[Anchor], Window]:
        """Resolve options into the plan, the anchor (if any) and the window."""
        options = _coerce_options(options)
        plan = SortPlan.build(
            options.sort,
            tie_break=self.settings.tie_break_field,
            default=self.settings.default_sort,
        )
        anchor = None
        if options.cursor:
            # The token records the side it was issued for; the request decides which side to read
            anchor = replace(self.codec.decode(plan, options.cursor), traversal=options.traversal)
        window = resolve_limit(options.limit, self.settings)
        return options, plan, anchor, window

    # ----- find -----

    async def find_paged(
        self,
        collection: Any,
        options: PaginateOptions | Mapping[str, Any],
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[Mapping[str, Any]] = None,
        populate: Optional[Sequence[Populate]] = None,
        **find_options: Any,
    ) -> PaginateResult:
        """
        Fetch one page with ``find()``.

        Args:
            collection: Motor / PyMongo async collection.
            options: Sort, limit and at most one of after/before.
            filter: Caller's query, ANDed with the directional predicate.
            projection: Passed to ``find()``; must keep the sort fields.
            populate: References to resolve on the returned items.
            **find_options: Extra ``find()`` keywords (hint, collation, ...).
        """
        options, plan, anchor, window = self.prepare(options)
        query = compile_find_query(filter, build_directional_predicate(plan, anchor))

        read = self._fetcher.fetch_find(
            collection, query, plan, options.traversal, window, projection, **find_options
        )
        count = None
        if not self.settings.suppress_total_count:
            count = collection.count_documents(dict(filter or {}))

        documents, total = await _with_count(read, count)
        result = assemble(
            documents,
            window,
            plan,
            self.codec,
            traversal=options.traversal,
            anchored=anchor is not None,
            total_count=total,
        )
        await populate_refs(result.items, populate)
        return result

    async def explain_paged(
        self,
        collection: Any,
        options: PaginateOptions | Mapping[str, Any],
        verbosity: str = "queryPlanner",
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[Mapping[str, Any]] = None,
        **find_options: Any,
    ) -> dict[str, Any]:
        """Return the server's explain output for the find() that find_paged would run."""
        if verbosity not in VERBOSITY_MODES:
            raise PaginationOptionsError(
                f"Unknown explain verbosity {verbosity!r}; expected one of {list(VERBOSITY_MODES)}"
            )
        unknown = set(find_options) - set(_EXPLAIN_FIND_OPTIONS)
        if unknown:
            raise PaginationOptionsError(f"Cannot explain with find options: {sorted(unknown)}")

        options, plan, anchor, window = self.prepare(options)
        find_command: dict[str, Any] = {
            "find": collection.name,
            "filter": compile_find_query(filter, build_directional_predicate(plan, anchor)),
            "sort": plan.sort_stage(options.traversal),
        }
        if window.fetch_size:
            find_command["limit"] = window.fetch_size
        if projection:
            find_command["projection"] = dict(projection)
        for name, value in find_options.items():
            find_command[_EXPLAIN_FIND_OPTIONS[name]] = value

        logger.debug("Explaining %s with verbosity %s", find_command, verbosity)
        return await collection.database.command({"explain": find_command, "verbosity": verbosity})

    # ----- aggregate -----

    async def _count_pipeline(self, collection: Any, pipeline: Sequence[Mapping[str, Any]]) -> int:
        rows = await self._fetcher.fetch_aggregate(collection, compile_count_pipeline(pipeline))
        return rows[0]["count"] if rows else 0

    async def aggregate_paged(
        self,
        collection: Any,
        options: PaginateOptions | Mapping[str, Any],
        pipeline: Sequence[Mapping[str, Any]],
        pipeline_after: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> PaginateResult:
        """
        Fetch one page from an aggregation.

        *pipeline* runs first and must produce every sort field; the
        pagination $match/$sort/$limit follow it, then *pipeline_after*
        runs over the window only. *pipeline_after* must not drop the sort
        fields, or cursor encoding fails with MissingFieldError.
        """
        options, plan, anchor, window = self.prepare(options)
        stages = compile_pipeline(
            pipeline,
            plan,
            build_directional_predicate(plan, anchor),
            traversal=options.traversal,
            fetch_size=window.fetch_size,
            pipeline_after=pipeline_after,
        )

        read = self._fetcher.fetch_aggregate(collection, stages)
        count = None
        if not self.settings.suppress_total_count:
            count = self._count_pipeline(collection, pipeline)

        documents, total = await _with_count(read, count)
        return assemble(
            documents,
            window,
            plan,
            self.codec,
            traversal=options.traversal,
            anchored=anchor is not None,
            total_count=total,
        )


# ---------------------------------------------------------------------------
# Module-level shortcuts using the global settings
# ---------------------------------------------------------------------------


async def find_paged(
    collection: Any,
    options: PaginateOptions | Mapping[str, Any],
    filter: Optional[Mapping[str, Any]] = None,
    projection: Optional[Mapping[str, Any]] = None,
    populate: Optional[Sequence[Populate]] = None,
    **find_options: Any,
) -> PaginateResult:
    return await Paginator().find_paged(
        collection, options, filter, projection, populate, **find_options
    )


async def aggregate_paged(
    collection: Any,
    options: PaginateOptions | Mapping[str, Any],
    pipeline: Sequence[Mapping[str, Any]],
    pipeline_after: Optional[Sequence[Mapping[str, Any]]] = None,
) -> PaginateResult:
    return await Paginator().aggregate_paged(collection, options, pipeline, pipeline_after)


async def explain_paged(
    collection: Any,
    options: PaginateOptions | Mapping[str, Any],
    verbosity: str = "queryPlanner",
    filter: Optional[Mapping[str, Any]] = None,
    projection: Optional[Mapping[str, Any]] = None,
    **find_options: Any,
) -> dict[str, Any]:
    return await Paginator().explain_paged(
        collection, options, verbosity, filter, projection, **find_options
    )
