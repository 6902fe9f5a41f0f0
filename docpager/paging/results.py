"""Pydantic models for the page envelope handed back to callers."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class PageInfo(BaseModel):
    """Navigation metadata for one page."""

    has_next_page: bool = Field(False, serialization_alias="hasNextPage")
    has_previous_page: bool = Field(False, serialization_alias="hasPreviousPage")
    start_cursor: Optional[str] = Field(None, serialization_alias="startCursor")
    end_cursor: Optional[str] = Field(None, serialization_alias="endCursor")


class PaginateResult(BaseModel):
    """
    One page of documents.

    ``total_count`` comes from an independent count and may disagree with
    the page under concurrent writes. It is None when counting is suppressed.
    """

    items: list[Any] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, serialization_alias="pageInfo")
    total_count: Optional[int] = Field(None, serialization_alias="totalCount")

    def to_dict(self) -> dict[str, Any]:
        """camelCase envelope; absent cursors and count are left out. Items are passed through as-is."""
        envelope: dict[str, Any] = {
            "items": list(self.items),
            "pageInfo": self.page_info.model_dump(by_alias=True, exclude_none=True),
        }
        if self.total_count is not None:
            envelope["totalCount"] = self.total_count
        return envelope
