"""
Turns an over-fetched window into a PaginateResult.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Optional

from docpager.paging.cursor import CursorCodec
from docpager.paging.models import Traversal
from docpager.paging.results import PageInfo, PaginateResult
from docpager.paging.sort_plan import SortPlan
from docpager.paging.window import Window

logger = logging.getLogger(__name__)


def assemble(
    fetched: Sequence[Any],
    window: Window,
    plan: SortPlan,
    codec: CursorCodec,
    traversal: Traversal = Traversal.FORWARD,
    anchored: bool = False,
    total_count: Optional[int] = None,
) -> PaginateResult:
    """
    Build the page from the documents the store returned.

    Args:
        fetched: Documents in read order (reverse plan order when backward).
        window: The resolved limit; a bounded window fetched limit + 1 rows.
        plan: Sort plan the cursors are encoded against.
        codec: Cursor codec for start/end cursors.
        traversal: Direction the window was read in.
        anchored: Whether the request carried a cursor. The anchor document
            sits on the opposite side of the page, so that side has a page too.
        total_count: Independent count to attach, if one was taken.
    """
    items = list(fetched)
    has_more = False
    if not window.unbounded and len(items) > window.limit:
        has_more = True
        del items[window.limit:]

    if traversal is Traversal.BACKWARD:
        items.reverse()
        has_next, has_previous = anchored, has_more
    else:
        has_next, has_previous = has_more, anchored

    start_cursor = end_cursor = None
    if items:
        start_cursor = codec.encode(plan, items[0], Traversal.BACKWARD)
        end_cursor = codec.encode(plan, items[-1], Traversal.FORWARD)

    logger.debug(
        "Assembled page: %d items (fetched %d), next=%s previous=%s",
        len(items), len(fetched), has_next, has_previous,
    )
    return PaginateResult(
        items=items,
        page_info=PageInfo(
            has_next_page=has_next,
            has_previous_page=has_previous,
            start_cursor=start_cursor,
            end_cursor=end_cursor,
        ),
        total_count=total_count,
    )
