"""Pytest configuration for core adapter unit tests."""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mongo_client() -> MagicMock:
    """Provide a MagicMock standing in for pymongo.MongoClient.

    ``admin.command`` returns ``{"ok": 1.0}`` unless a test sets a side effect.

    Example:
        def test_ping_failure(mongo_client):
            mongo_client.admin.command.side_effect = ServerSelectionTimeoutError("down")
    """
    client = MagicMock(name="MongoClient")
    client.admin.command.return_value = {"ok": 1.0}
    client.topology_description.topology_type_name = "ReplicaSetWithPrimary"
    return client


@pytest.fixture
def client_factory(mongo_client: MagicMock) -> MagicMock:
    """Provide a factory returning ``mongo_client`` and recording its arguments."""
    return MagicMock(name="client_factory", return_value=mongo_client)
