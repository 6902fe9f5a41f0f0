"""
Reference population for find_paged().

After the page is cut, every Populate spec collects the reference values
stored at its path on the returned documents, loads the referenced
documents with one ``$in`` query and writes them back in place. Only the
page's own items are resolved, never the over-fetched row.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Populate:
    """
    Replace the reference at *path* with the document it points to.

    ``path`` and ``foreign_field`` may be dotted; the value at ``path`` may be
    a single reference or a list of them. References with no match become
    None (single) or are dropped (list).
    """

    path: str
    collection: Any
    foreign_field: str = "_id"
    projection: Optional[Mapping[str, Any]] = None


def _parent_and_key(document: Any, path: str) -> tuple[Optional[MutableMapping[str, Any]], str]:
    *parents, key = path.split(".")
    current = document
    for part in parents:
        if not isinstance(current, Mapping):
            return None, key
        current = current.get(part)
    if not isinstance(current, MutableMapping):
        return None, key
    return current, key


def _value_at(document: Any, path: str) -> Any:
    parent, key = _parent_and_key(document, path)
    return None if parent is None else parent.get(key)


def _collect_refs(documents: Sequence[Any], path: str) -> list[Any]:
    refs: list[Any] = []
    for doc in documents:
        parent, key = _parent_and_key(doc, path)
        if parent is None or parent.get(key) is None:
            continue
        value = parent[key]
        refs.extend(value if isinstance(value, list) else [value])
    return refs


async def _populate_one(documents: Sequence[Any], spec: Populate) -> None:
    refs = _collect_refs(documents, spec.path)
    if not refs:
        return

    unique_refs = list({repr(r): r for r in refs}.values())
    cursor = spec.collection.find({spec.foreign_field: {"$in": unique_refs}}, spec.projection)
    related = await cursor.to_list(length=None)
    by_key = {repr(_value_at(d, spec.foreign_field)): d for d in related}

    for doc in documents:
        parent, key = _parent_and_key(doc, spec.path)
        if parent is None or parent.get(key) is None:
            continue
        value = parent[key]
        if isinstance(value, list):
            parent[key] = [by_key[repr(r)] for r in value if repr(r) in by_key]
        else:
            parent[key] = by_key.get(repr(value))

    logger.debug(
        "Populated %s: %d references, %d resolved", spec.path, len(unique_refs), len(related)
    )


async def populate(documents: Sequence[Any], specs: Optional[Sequence[Populate]]) -> None:
    """Resolve each spec in order, so later paths may reach into earlier results."""
    for spec in specs or ():
        await _populate_one(documents, spec)
