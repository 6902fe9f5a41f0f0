"""Tests for the shared MongoDB client factory."""

from unittest.mock import MagicMock

import pytest

from docpager.storage import connection


@pytest.fixture
def fake_motor(monkeypatch):
    """Replace AsyncIOMotorClient with a factory of MagicMocks."""
    factory = MagicMock(side_effect=lambda *args, **kwargs: MagicMock(name=f"client({args[0]})"))
    monkeypatch.setattr(connection, "AsyncIOMotorClient", factory)
    monkeypatch.setattr(connection, "_clients", {})
    return factory


def test_client_is_shared_per_uri(fake_motor):
    """Repeated calls with the same URI return the same client."""
    first = connection.get_client("mongodb://a:27017")
    second = connection.get_client("mongodb://a:27017")
    other = connection.get_client("mongodb://b:27017")

    assert first is second
    assert other is not first
    assert fake_motor.call_count == 2


def test_client_uses_storage_settings(fake_motor):
    """Default URI, app name and timeout come from StorageSettings."""
    storage = connection.get_settings().storage
    connection.get_client()

    args, kwargs = fake_motor.call_args
    assert args == (storage.uri,)
    assert kwargs["appname"] == storage.app_name
    assert kwargs["serverSelectionTimeoutMS"] == storage.server_selection_timeout_ms
    assert kwargs["tz_aware"] is False


def test_get_collection_defaults_database(fake_motor):
    """get_collection indexes client[database][name]."""
    collection = connection.get_collection("posts", uri="mongodb://a:27017")
    client = connection.get_client("mongodb://a:27017")
    database = connection.get_settings().storage.database

    client.__getitem__.assert_called_with(database)
    assert collection is client[database]["posts"]


def test_close_client_reopens_fresh(fake_motor):
    """Closing drops the cached client; the next call creates a new one."""
    first = connection.get_client("mongodb://a:27017")
    connection.close_client("mongodb://a:27017")

    first.close.assert_called_once()
    assert connection.get_client("mongodb://a:27017") is not first


def test_close_unknown_client_is_noop(fake_motor):
    """Closing a URI that was never opened must not raise."""
    connection.close_client("mongodb://nowhere:27017")


def test_close_all_clients(fake_motor):
    """close_all_clients closes every cached client."""
    clients = [connection.get_client(f"mongodb://h{i}:27017") for i in range(3)]
    connection.close_all_clients()

    for client in clients:
        client.close.assert_called_once()
    assert connection._clients == {}
