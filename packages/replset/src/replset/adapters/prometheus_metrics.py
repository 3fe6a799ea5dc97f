"""Prometheus metrics adapter for replica set membership.

Implements MetricsPort using prometheus-client library.
Gracefully handles missing prometheus-client (raises ImportError at init).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from replset.domain.states import MemberState

if TYPE_CHECKING:
    from prometheus_client import Gauge

CONNECTION_MODES = ("group_aware", "local_authenticated", "local_bypass")


class PrometheusMetricsAdapter:
    """Prometheus implementation of MetricsPort.

    All gauges use a configurable prefix (default 'replset_').

    This adapter requires prometheus-client to be installed:
        pip install replset-py[metrics]

    Example:
        >>> adapter = PrometheusMetricsAdapter(prefix="node1_replset")
        >>> adapter.set_member_state(MemberState.SECONDARY)  # gauge = 2

    Raises:
        ImportError: If prometheus-client is not installed.
    """

    def __init__(self, prefix: str = "replset") -> None:
        """Initialize Prometheus gauges.

        Args:
            prefix: Metric name prefix. Defaults to "replset".

        Raises:
            ImportError: If prometheus-client is not installed.
        """
        # Import here to make prometheus-client optional
        from prometheus_client import Gauge

        self._member_state: Gauge = Gauge(
            f"{prefix}_member_state",
            "Replica set member state code of this node (-1 = unmapped)",
        )
        self._config_version: Gauge = Gauge(
            f"{prefix}_config_version",
            "Version of the last applied replica set configuration",
        )
        self._members_removed: Gauge = Gauge(
            f"{prefix}_members_removed",
            "Members evicted by the last reconfiguration",
        )
        self._connection_mode: Gauge = Gauge(
            f"{prefix}_connection_mode",
            "Current connection mode: 1 for the active mode, 0 otherwise",
            ["mode"],
        )

    def set_member_state(self, state: MemberState | None) -> None:
        """Set member state gauge to the state code, -1 if unmapped."""
        self._member_state.set(int(state) if state is not None else -1)

    def set_config_version(self, version: int) -> None:
        """Set config version gauge."""
        self._config_version.set(version)

    def set_members_removed(self, count: int) -> None:
        """Set members removed gauge."""
        self._members_removed.set(count)

    def set_connection_mode(self, mode: str) -> None:
        """Set the labelled gauge of ``mode`` to 1 and the others to 0."""
        for known in CONNECTION_MODES:
            self._connection_mode.labels(mode=known).set(1 if known == mode else 0)
