"""Shared fixtures for BDD tests."""

import pytest

from replset.adapters.fakes import (
    FakeDataStoreClient,
    FakeDataStoreConnector,
    FakeSleeper,
)


@pytest.fixture
def data_store() -> FakeDataStoreClient:
    """Provide an in-memory data store with no replica set.

    Returns:
        FakeDataStoreClient without configuration or status.
    """
    return FakeDataStoreClient()


@pytest.fixture
def connector(data_store: FakeDataStoreClient) -> FakeDataStoreConnector:
    """Provide a connector handing out ``data_store`` on every route."""
    return FakeDataStoreConnector(data_store)


@pytest.fixture
def sleeper() -> FakeSleeper:
    """Provide a sleeper that records instead of blocking."""
    return FakeSleeper()
