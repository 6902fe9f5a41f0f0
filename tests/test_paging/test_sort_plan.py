"""Tests for sort parsing and SortPlan construction."""

from __future__ import annotations

import pytest

from docpager.paging.errors import InvalidSortError, MissingFieldError
from docpager.paging.models import SortDirection, SortField, Traversal
from docpager.paging.sort_plan import SortPlan, parse_sort

ASC = SortDirection.ASCENDING
DESC = SortDirection.DESCENDING


class TestParseSort:
    def test_pairs(self):
        assert parse_sort([("createdAt", -1), ("title", "asc")]) == [
            SortField("createdAt", DESC),
            SortField("title", ASC),
        ]

    def test_strings(self):
        assert parse_sort(["-createdAt", "title", "score:desc"]) == [
            SortField("createdAt", DESC),
            SortField("title", ASC),
            SortField("score", DESC),
        ]

    def test_single_string(self):
        assert parse_sort("createdAt:ascending") == [SortField("createdAt", ASC)]

    def test_mapping(self):
        assert parse_sort({"createdAt": -1, "title": 1}) == [
            SortField("createdAt", DESC),
            SortField("title", ASC),
        ]

    def test_none_is_empty(self):
        assert parse_sort(None) == []

    def test_unknown_direction(self):
        with pytest.raises(InvalidSortError):
            parse_sort([("createdAt", "sideways")])

    def test_bool_is_not_a_direction(self):
        with pytest.raises(InvalidSortError):
            parse_sort([("createdAt", True)])

    def test_empty_path(self):
        with pytest.raises(InvalidSortError):
            parse_sort([("", 1)])

    def test_garbage_entry(self):
        with pytest.raises(InvalidSortError):
            parse_sort([42])


class TestSortPlanBuild:
    def test_appends_tie_break(self):
        plan = SortPlan.build([("createdAt", "desc")])
        assert plan.fields == (SortField("createdAt", DESC), SortField("_id", ASC))

    def test_keeps_existing_tie_break_direction(self):
        plan = SortPlan.build([("createdAt", "desc"), ("_id", "desc")])
        assert plan.fields == (SortField("createdAt", DESC), SortField("_id", DESC))

    def test_tie_break_only(self):
        plan = SortPlan.build([("_id", -1)])
        assert plan.fields == (SortField("_id", DESC),)

    def test_custom_tie_break(self):
        plan = SortPlan.build(["title"], tie_break="slug")
        assert plan.paths == ("title", "slug")

    def test_empty_without_default_fails(self):
        with pytest.raises(InvalidSortError):
            SortPlan.build([])

    def test_empty_uses_default(self):
        plan = SortPlan.build([], default=(("createdAt", "desc"),))
        assert plan.paths == ("createdAt", "_id")

    def test_duplicate_path_fails(self):
        with pytest.raises(InvalidSortError):
            SortPlan.build(["title", "-title"])

    def test_tie_break_not_last_fails(self):
        with pytest.raises(InvalidSortError):
            SortPlan.build(["_id", "title"])

    def test_is_immutable(self):
        plan = SortPlan.build(["title"])
        with pytest.raises(AttributeError):
            plan.fields = ()


class TestSortPlanHelpers:
    def test_sort_spec_forward(self):
        plan = SortPlan.build([("createdAt", -1)])
        assert plan.sort_spec() == [("createdAt", -1), ("_id", 1)]

    def test_sort_spec_backward_flips_every_field(self):
        plan = SortPlan.build([("createdAt", -1)])
        assert plan.sort_spec(Traversal.BACKWARD) == [("createdAt", 1), ("_id", -1)]

    def test_sort_stage_keeps_order(self):
        plan = SortPlan.build([("score", -1), ("title", 1)])
        assert list(plan.sort_stage().items()) == [("score", -1), ("title", 1), ("_id", 1)]

    def test_values_of_nested_path(self):
        plan = SortPlan.build(["meta.rank"])
        assert plan.values_of({"_id": 7, "meta": {"rank": 3}}) == (3, 7)

    def test_values_of_keeps_explicit_none(self):
        plan = SortPlan.build(["score"])
        assert plan.values_of({"_id": 1, "score": None}) == (None, 1)

    def test_values_of_missing_field(self):
        plan = SortPlan.build(["score"])
        with pytest.raises(MissingFieldError) as excinfo:
            plan.values_of({"_id": 1})
        assert excinfo.value.path == "score"

    def test_len_and_iter(self):
        plan = SortPlan.build(["a", "b"])
        assert len(plan) == 3
        assert [f.path for f in plan] == ["a", "b", "_id"]
