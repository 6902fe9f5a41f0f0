from docpager.storage.connection import (
    close_all_clients,
    close_client,
    get_client,
    get_collection,
)

__all__ = [
    "get_client",
    "get_collection",
    "close_client",
    "close_all_clients",
]
