"""Port interface and no-op implementation for metrics collection.

Metrics ports follow fire-and-forget semantics: implementations may
buffer, sample, or drop metrics as needed. No exceptions should propagate.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from replset.domain.states import MemberState


@runtime_checkable
class MetricsPort(Protocol):
    """Port interface for metrics collection.

    Implementations handle metrics recording to various backends
    (Prometheus, StatsD, etc.). Abstracts the metrics mechanism from
    use cases that need to emit metrics.

    Contract:
        - All methods are fire-and-forget (no return value, no exceptions)
        - set_* methods update gauges to specific values
        - Implementations may no-op if metrics are disabled
    """

    def set_member_state(self, state: MemberState | None) -> None:
        """Set the member state gauge.

        Args:
            state: Observed state of this node. None (unmapped) maps to -1.
        """
        ...

    def set_config_version(self, version: int) -> None:
        """Set the gauge of the last applied configuration version."""
        ...

    def set_members_removed(self, count: int) -> None:
        """Set the number of members evicted by the last reconfiguration."""
        ...

    def set_connection_mode(self, mode: str) -> None:
        """Record how the controller is connected.

        Args:
            mode: One of "group_aware", "local_authenticated", "local_bypass".
        """
        ...


class NoOpMetricsAdapter:
    """No-operation metrics adapter for when metrics are disabled.

    All methods are no-ops. This allows use cases to unconditionally
    call metrics methods without checking if metrics are enabled.
    """

    def set_member_state(self, state: MemberState | None) -> None:
        """No-op."""
        pass

    def set_config_version(self, version: int) -> None:
        """No-op."""
        pass

    def set_members_removed(self, count: int) -> None:
        """No-op."""
        pass

    def set_connection_mode(self, mode: str) -> None:
        """No-op."""
        pass
