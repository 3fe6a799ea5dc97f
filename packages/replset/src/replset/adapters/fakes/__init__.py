"""Fake adapters for testing.

This module provides test doubles for port interfaces, enabling
deterministic testing without a running data store or real sleeping.
"""

from replset.adapters.fakes.fake_data_store import (
    ROUTE_GROUP,
    ROUTE_LOCAL_AUTH,
    ROUTE_LOCAL_BYPASS,
    CommandCall,
    ConnectCall,
    FakeDataStoreClient,
    FakeDataStoreConnector,
    config_document,
    status_document,
)
from replset.adapters.fakes.fake_metrics import FakeMetricsAdapter, MetricCall
from replset.adapters.fakes.fake_sleeper import FakeHostKeyResolver, FakeSleeper

__all__ = [
    "ROUTE_GROUP",
    "ROUTE_LOCAL_AUTH",
    "ROUTE_LOCAL_BYPASS",
    "CommandCall",
    "ConnectCall",
    "FakeDataStoreClient",
    "FakeDataStoreConnector",
    "FakeHostKeyResolver",
    "FakeMetricsAdapter",
    "FakeSleeper",
    "MetricCall",
    "config_document",
    "status_document",
]
