"""Shared fixtures for replset core unit tests."""

from __future__ import annotations

import pytest

from replset.adapters.fakes import (
    FakeDataStoreClient,
    FakeDataStoreConnector,
    FakeMetricsAdapter,
    FakeSleeper,
)
from replset.domain.membership import SecurityData
from replset.domain.retry import RetryBudget
from replset.domain.settings import ReplicaSetSettings
from replset.usecases.connection_manager import ConnectionManager
from replset.usecases.role_waiter import RoleWaiter
from replset.usecases.status_reader import StatusReader

HOST_A = "10.0.0.1:27017"
HOST_B = "10.0.0.2:27017"
HOST_C = "10.0.0.3:27017"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for unit tests."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


@pytest.fixture
def settings() -> ReplicaSetSettings:
    """Settings with two seeds and small budgets."""
    return ReplicaSetSettings(
        key="rs0",
        name="rs0",
        security=SecurityData(admin_user="admin", admin_password="secret"),
        seeds=(HOST_A, HOST_B),
        connect_budget=RetryBudget(attempts=3, wait_seconds=10),
        init_budget=RetryBudget(attempts=4, wait_seconds=3),
        reconfig_budget=RetryBudget(attempts=3, wait_seconds=10),
    )


@pytest.fixture
def client() -> FakeDataStoreClient:
    return FakeDataStoreClient()


@pytest.fixture
def connector(client: FakeDataStoreClient) -> FakeDataStoreConnector:
    return FakeDataStoreConnector(client)


@pytest.fixture
def sleeper() -> FakeSleeper:
    return FakeSleeper()


@pytest.fixture
def metrics() -> FakeMetricsAdapter:
    return FakeMetricsAdapter()


@pytest.fixture
def connection(
    settings: ReplicaSetSettings,
    connector: FakeDataStoreConnector,
    sleeper: FakeSleeper,
    metrics: FakeMetricsAdapter,
) -> ConnectionManager:
    """A connection manager already connected through the seed list."""
    manager = ConnectionManager(settings, connector, sleeper, metrics)
    manager.connect()
    return manager


@pytest.fixture
def status_reader(connection: ConnectionManager) -> StatusReader:
    return StatusReader(connection)


@pytest.fixture
def role_waiter(
    status_reader: StatusReader, sleeper: FakeSleeper, metrics: FakeMetricsAdapter
) -> RoleWaiter:
    """Role waiter observing HOST_C."""
    return RoleWaiter(status_reader, HOST_C, sleeper, metrics)
