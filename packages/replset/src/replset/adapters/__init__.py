"""Interface adapters: ports and their data store, metrics and host implementations."""

from replset.adapters.ports import (
    CancellableSleeper,
    ConnectMode,
    ConnectOptions,
    DataStoreClientPort,
    DataStoreConnectorPort,
    EnvironmentHostKeyResolver,
    HostKeyResolverPort,
    SleeperPort,
    SocketHostKeyResolver,
)
from replset.adapters.metrics_port import MetricsPort, NoOpMetricsAdapter
from replset.adapters.pymongo_client import PyMongoClientAdapter, PyMongoConnector

__all__ = [
    "CancellableSleeper",
    "ConnectMode",
    "ConnectOptions",
    "DataStoreClientPort",
    "DataStoreConnectorPort",
    "EnvironmentHostKeyResolver",
    "HostKeyResolverPort",
    "MetricsPort",
    "NoOpMetricsAdapter",
    "PyMongoClientAdapter",
    "PyMongoConnector",
    "SleeperPort",
    "SocketHostKeyResolver",
]
