"""
Shared test fixtures for the docpager test suite.

Every test gets fresh in-memory collections (tests/fakes.py) seeded with
a deterministic data set, so page boundaries can be asserted exactly.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pytest
from bson import ObjectId

from docpager.config.settings import PaginationSettings
from docpager.paging.paginator import Paginator
from tests.fakes import FakeCollection, FakeDatabase

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def oid(n: int) -> ObjectId:
    """Deterministic ObjectId whose order follows *n*."""
    return ObjectId(f"{n:024x}")


def make_post(n: int, **kwargs: Any) -> dict[str, Any]:
    """
    Create a post document with sensible defaults. Override any field via kwargs.

    createdAt advances every second post, so consecutive pairs tie and only
    the _id tie-break orders them.
    """
    defaults: dict[str, Any] = dict(
        _id=oid(n),
        title=f"Post {n:02d}",
        createdAt=BASE_TIME + timedelta(hours=n // 2),
        score=n % 5,
        authorId=oid(1000 + n % 3),
        status="published" if n % 4 else "draft",
    )
    defaults.update(kwargs)
    return defaults


def make_posts(count: int = 25) -> list[dict[str, Any]]:
    return [make_post(n) for n in range(1, count + 1)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def posts(database: FakeDatabase) -> FakeCollection:
    """25 posts, ids 1..25."""
    collection = database["posts"]
    collection.insert_many(make_posts())
    return collection


@pytest.fixture
def authors(database: FakeDatabase) -> FakeCollection:
    collection = database["authors"]
    collection.insert_many(
        [{"_id": oid(1000 + i), "name": f"author-{i}"} for i in range(3)]
    )
    return collection


@pytest.fixture
def pagination_settings() -> PaginationSettings:
    return PaginationSettings()


@pytest.fixture
def paginator(pagination_settings: PaginationSettings) -> Paginator:
    return Paginator(settings=pagination_settings)
