"""Fake metrics adapter for testing.

Provides a test double for MetricsPort that records all metric updates
for assertion in tests.
"""

from __future__ import annotations

from dataclasses import dataclass

from replset.domain.states import MemberState


@dataclass(frozen=True)
class MetricCall:
    """Record of a single metric update.

    Attributes:
        metric_name: Name of the metric that was updated.
        value: Value that was set.
    """

    metric_name: str
    value: float | int | str | None


class FakeMetricsAdapter:
    """Fake implementation of MetricsPort for testing.

    Example:
        >>> fake = FakeMetricsAdapter()
        >>> fake.set_config_version(4)
        >>> fake.current_config_version
        4
        >>> fake.calls
        [MetricCall(metric_name='config_version', value=4)]
    """

    def __init__(self) -> None:
        """Initialize with no recorded state."""
        self._member_state: MemberState | None = None
        self._config_version: int | None = None
        self._members_removed: int | None = None
        self._connection_mode: str | None = None
        self._calls: list[MetricCall] = []

    @property
    def calls(self) -> list[MetricCall]:
        """Return a copy of all metric update calls, in order."""
        return list(self._calls)

    @property
    def current_member_state(self) -> MemberState | None:
        """Return last set member state, or None if never set."""
        return self._member_state

    @property
    def current_config_version(self) -> int | None:
        """Return last set config version, or None if never set."""
        return self._config_version

    @property
    def current_members_removed(self) -> int | None:
        """Return last set removed member count, or None if never set."""
        return self._members_removed

    @property
    def current_connection_mode(self) -> str | None:
        """Return last set connection mode, or None if never set."""
        return self._connection_mode

    def set_member_state(self, state: MemberState | None) -> None:
        """Record member state update."""
        self._member_state = state
        self._calls.append(
            MetricCall("member_state", state.name if state is not None else None)
        )

    def set_config_version(self, version: int) -> None:
        """Record config version update."""
        self._config_version = version
        self._calls.append(MetricCall("config_version", version))

    def set_members_removed(self, count: int) -> None:
        """Record removed member count update."""
        self._members_removed = count
        self._calls.append(MetricCall("members_removed", count))

    def set_connection_mode(self, mode: str) -> None:
        """Record connection mode update."""
        self._connection_mode = mode
        self._calls.append(MetricCall("connection_mode", mode))

    def reset(self) -> None:
        """Reset all state and calls."""
        self._member_state = None
        self._config_version = None
        self._members_removed = None
        self._connection_mode = None
        self._calls.clear()
