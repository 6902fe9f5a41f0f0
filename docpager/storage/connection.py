"""
MongoDB client factory.

The pagination engine never opens connections; it is handed collections.
This module is what the CLI (and applications that want a shared client)
use to get them.

Design decisions:
- One AsyncIOMotorClient per URI. Motor clients pool connections
  internally and are safe to share across tasks.
- Timeouts and the app name come from StorageSettings.
- tz_aware stays False so datetimes come back naive UTC, matching what
  the JSON cursor codec decodes.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from docpager.config.settings import get_settings

logger = logging.getLogger(__name__)

# Module-level lock for client creation
_lock = threading.Lock()

# Singleton client per connection string
_clients: dict[str, AsyncIOMotorClient] = {}


def get_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    """
    Get the shared client for *uri* (default: StorageSettings.uri).

    Creating the client does not contact the server; the first operation
    does.
    """
    storage = get_settings().storage
    uri = uri or storage.uri

    with _lock:
        if uri in _clients:
            return _clients[uri]

        logger.info("Creating MongoDB client (app=%s)", storage.app_name)
        client = AsyncIOMotorClient(
            uri,
            appname=storage.app_name,
            serverSelectionTimeoutMS=storage.server_selection_timeout_ms,
            tz_aware=False,
        )
        _clients[uri] = client
        return client


def get_collection(
    name: str,
    database: Optional[str] = None,
    uri: Optional[str] = None,
) -> AsyncIOMotorCollection:
    """Return collection *name* from *database* (default: StorageSettings.database)."""
    database = database or get_settings().storage.database
    return get_client(uri)[database][name]


def close_client(uri: Optional[str] = None) -> None:
    """
    Close the client for *uri* (or the default).

    Useful in tests and shutdown hooks.
    """
    uri = uri or get_settings().storage.uri

    with _lock:
        client = _clients.pop(uri, None)
        if client is not None:
            client.close()
            logger.info("MongoDB client closed")


def close_all_clients() -> None:
    """Close all open clients. Used during shutdown."""
    with _lock:
        for client in _clients.values():
            client.close()
        if _clients:
            logger.info("Closed %d MongoDB client(s)", len(_clients))
        _clients.clear()
