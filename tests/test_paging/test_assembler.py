"""Tests for page assembly from an over-fetched window."""

from __future__ import annotations

import pytest

from docpager.paging.assembler import assemble
from docpager.paging.cursor import JsonCursorCodec
from docpager.paging.errors import MissingFieldError
from docpager.paging.models import Traversal
from docpager.paging.sort_plan import SortPlan
from docpager.paging.window import Window

PLAN = SortPlan.build([("n", 1)])
CODEC = JsonCursorCodec()


def docs(*ns: int) -> list[dict]:
    return [{"_id": n, "n": n} for n in ns]


class TestForward:
    def test_extra_item_is_dropped_and_flags_next(self):
        page = assemble(docs(1, 2, 3, 4), Window(limit=3), PLAN, CODEC)
        assert [d["n"] for d in page.items] == [1, 2, 3]
        assert page.page_info.has_next_page
        assert not page.page_info.has_previous_page

    def test_short_window_has_no_next(self):
        page = assemble(docs(1, 2), Window(limit=3), PLAN, CODEC)
        assert len(page.items) == 2
        assert not page.page_info.has_next_page

    def test_exact_window_has_no_next(self):
        page = assemble(docs(1, 2, 3), Window(limit=3), PLAN, CODEC)
        assert len(page.items) == 3
        assert not page.page_info.has_next_page

    def test_anchored_page_has_previous(self):
        page = assemble(docs(4, 5), Window(limit=3), PLAN, CODEC, anchored=True)
        assert page.page_info.has_previous_page

    def test_cursors_encode_first_and_last(self):
        page = assemble(docs(1, 2, 3, 4), Window(limit=3), PLAN, CODEC)
        start = CODEC.decode(PLAN, page.page_info.start_cursor)
        end = CODEC.decode(PLAN, page.page_info.end_cursor)
        assert start.values == (1, 1)
        assert start.traversal is Traversal.BACKWARD
        assert end.values == (3, 3)
        assert end.traversal is Traversal.FORWARD


class TestBackward:
    def test_items_come_back_in_forward_order(self):
        # Backward reads arrive in reverse sort order: 6, 5, 4, 3
        page = assemble(
            docs(6, 5, 4, 3), Window(limit=3), PLAN, CODEC,
            traversal=Traversal.BACKWARD, anchored=True,
        )
        assert [d["n"] for d in page.items] == [4, 5, 6]
        assert page.page_info.has_previous_page
        assert page.page_info.has_next_page

    def test_reaching_the_start(self):
        page = assemble(
            docs(2, 1), Window(limit=3), PLAN, CODEC,
            traversal=Traversal.BACKWARD, anchored=True,
        )
        assert [d["n"] for d in page.items] == [1, 2]
        assert not page.page_info.has_previous_page
        assert page.page_info.has_next_page


class TestEdgeCases:
    def test_empty_page_has_no_cursors(self):
        page = assemble([], Window(limit=3), PLAN, CODEC)
        assert page.items == []
        assert page.page_info.start_cursor is None
        assert page.page_info.end_cursor is None
        assert not page.page_info.has_next_page

    def test_unbounded_never_trims(self):
        page = assemble(docs(1, 2, 3, 4), Window(limit=0, unbounded=True), PLAN, CODEC)
        assert len(page.items) == 4
        assert not page.page_info.has_next_page

    def test_total_count_attached(self):
        page = assemble(docs(1), Window(limit=3), PLAN, CODEC, total_count=42)
        assert page.total_count == 42

    def test_total_count_absent_by_default(self):
        assert assemble(docs(1), Window(limit=3), PLAN, CODEC).total_count is None

    def test_missing_sort_field(self):
        with pytest.raises(MissingFieldError):
            assemble([{"_id": 1}], Window(limit=3), PLAN, CODEC)

    def test_to_dict_envelope(self):
        page = assemble(docs(1, 2), Window(limit=1), PLAN, CODEC, total_count=2)
        envelope = page.to_dict()
        assert envelope["items"] == [{"_id": 1, "n": 1}]
        assert envelope["totalCount"] == 2
        assert envelope["pageInfo"]["hasNextPage"] is True
        assert envelope["pageInfo"]["hasPreviousPage"] is False
        assert set(envelope["pageInfo"]) == {"hasNextPage", "hasPreviousPage", "startCursor", "endCursor"}

    def test_to_dict_omits_absent_fields(self):
        envelope = assemble([], Window(limit=1), PLAN, CODEC).to_dict()
        assert "totalCount" not in envelope
        assert envelope["pageInfo"] == {"hasNextPage": False, "hasPreviousPage": False}
