"""Keyset pagination for MongoDB finds and aggregation pipelines."""

from docpager.paging.cursor import CursorCodec, JsonCursorCodec, MsgpackCursorCodec, get_codec
from docpager.paging.errors import (
    CursorSchemaMismatchError,
    InvalidCursorError,
    InvalidSortError,
    MissingFieldError,
    PaginationError,
    PaginationOptionsError,
)
from docpager.paging.models import Anchor, PaginateOptions, SortDirection, SortField, Traversal
from docpager.paging.paginator import Paginator, aggregate_paged, explain_paged, find_paged
from docpager.paging.populate import Populate
from docpager.paging.results import PageInfo, PaginateResult
from docpager.paging.sort_plan import SortPlan

__all__ = [
    "Anchor",
    "CursorCodec",
    "CursorSchemaMismatchError",
    "InvalidCursorError",
    "InvalidSortError",
    "JsonCursorCodec",
    "MissingFieldError",
    "MsgpackCursorCodec",
    "PageInfo",
    "PaginateOptions",
    "PaginateResult",
    "PaginationError",
    "PaginationOptionsError",
    "Paginator",
    "Populate",
    "SortDirection",
    "SortField",
    "SortPlan",
    "Traversal",
    "aggregate_paged",
    "explain_paged",
    "find_paged",
    "get_codec",
]
