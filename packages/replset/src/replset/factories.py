"""Factory functions for creating membership controllers.

Wires the use cases to concrete adapters. Handles optional dependency
imports gracefully.
"""

from __future__ import annotations

from replset.adapters.metrics_port import MetricsPort, NoOpMetricsAdapter
from replset.adapters.ports import (
    CancellableSleeper,
    DataStoreConnectorPort,
    HostKeyResolverPort,
    SleeperPort,
    SocketHostKeyResolver,
)
from replset.domain.cancellation import CancellationToken
from replset.domain.settings import ReplicaSetSettings
from replset.usecases.connection_manager import ConnectionManager
from replset.usecases.group_initiator import GroupInitiator
from replset.usecases.group_reconfigurer import GroupReconfigurer
from replset.usecases.membership_controller import MembershipController
from replset.usecases.role_waiter import RoleWaiter
from replset.usecases.status_reader import StatusReader


class PrometheusNotInstalledError(ImportError):
    """Raised when prometheus-client is required but not installed.

    Install with: pip install replset-py[metrics]
    """

    def __init__(self) -> None:
        super().__init__(
            "prometheus-client is not installed. "
            "Install with: pip install replset-py[metrics]"
        )


def create_metrics_adapter(prefix: str = "replset") -> MetricsPort:
    """Create a PrometheusMetricsAdapter.

    Raises:
        PrometheusNotInstalledError: If prometheus-client is not installed.
    """
    try:
        from replset.adapters.prometheus_metrics import PrometheusMetricsAdapter

        return PrometheusMetricsAdapter(prefix=prefix)
    except ImportError as exc:
        raise PrometheusNotInstalledError() from exc


def create_membership_controller(
    settings: ReplicaSetSettings,
    *,
    host_key: str | None = None,
    connector: DataStoreConnectorPort | None = None,
    sleeper: SleeperPort | None = None,
    metrics: MetricsPort | None = None,
    cancellation: CancellationToken | None = None,
    host_key_resolver: HostKeyResolverPort | None = None,
) -> MembershipController:
    """Create a MembershipController from settings.

    Args:
        settings: Replica set settings.
        host_key: This node's "ip:port". Resolved with ``host_key_resolver``
                  (default: SocketHostKeyResolver on settings.port) when omitted.
        connector: Data store connector (default: PyMongoConnector).
        sleeper: Sleeper port (default: CancellableSleeper over ``cancellation``).
        metrics: Metrics port (default: NoOpMetricsAdapter).
        cancellation: Token the caller can use to abort the retry loops.
                      Ignored when ``sleeper`` is given.
        host_key_resolver: Resolver used when ``host_key`` is omitted.

    Returns:
        A MembershipController ready for ensure_joined().

    Example:
        >>> token = CancellationToken(deadline_seconds=900)
        >>> controller = create_membership_controller(settings, cancellation=token)
        >>> controller.ensure_joined().state
    """
    if connector is None:
        from replset.adapters.pymongo_client import PyMongoConnector

        connector = PyMongoConnector()

    if sleeper is None:
        sleeper = CancellableSleeper(cancellation or CancellationToken())

    if metrics is None:
        metrics = NoOpMetricsAdapter()

    if host_key is None:
        resolver = host_key_resolver or SocketHostKeyResolver(port=settings.port)
        host_key = resolver.resolve_host_key()

    connection = ConnectionManager(settings, connector, sleeper, metrics)
    status_reader = StatusReader(connection)
    role_waiter = RoleWaiter(status_reader, host_key, sleeper, metrics)
    initiator = GroupInitiator(connection, role_waiter, settings.init_budget)
    reconfigurer = GroupReconfigurer(
        connection,
        status_reader,
        role_waiter,
        sleeper,
        settings.reconfig_budget,
        metrics,
    )

    return MembershipController(
        settings=settings,
        host_key=host_key,
        connection=connection,
        status_reader=status_reader,
        role_waiter=role_waiter,
        initiator=initiator,
        reconfigurer=reconfigurer,
    )
